"""중첩 element 트리(JSON) 조작과 버전 간 비교를 위한 순수 함수 모음입니다.

element 형태: {"id": str, "type": str, "data": {...}, "children": [...]}
모든 변경 함수는 입력 트리를 건드리지 않고 새 트리를 돌려준다.
"""

import copy
import json
from typing import Any, Dict, Iterator, List, Optional, Tuple
from uuid import uuid4

from content_engine.errors import NotFoundError, ValidationError

Element = Dict[str, Any]


def new_element_id() -> str:
    return uuid4().hex


def normalize_elements(elements: Optional[List[Element]]) -> List[Element]:
    """깊은 복사 후 id/children 을 채운다."""
    result = _normalize(elements)
    _ensure_unique_ids(result)
    return result


def _normalize(elements: Optional[List[Element]]) -> List[Element]:
    result = []
    for raw in elements or []:
        if not isinstance(raw, dict):
            raise ValidationError("element는 객체여야 합니다.")
        element = copy.deepcopy(raw)
        element["id"] = str(element.get("id") or new_element_id())
        element.setdefault("type", "text")
        element.setdefault("data", {})
        element["children"] = _normalize(element.get("children"))
        result.append(element)
    return result


def _ensure_unique_ids(elements: List[Element]) -> None:
    seen = set()
    for element_id, _parent_id, _position, _element in walk(elements):
        if element_id in seen:
            raise ValidationError(f"중복된 element id 입니다: {element_id}")
        seen.add(element_id)


def walk(
    elements: List[Element], parent_id: Optional[str] = None
) -> Iterator[Tuple[str, Optional[str], int, Element]]:
    for position, element in enumerate(elements or []):
        yield element["id"], parent_id, position, element
        yield from walk(element.get("children") or [], element["id"])


def without_children(element: Element) -> Element:
    return {k: v for k, v in element.items() if k != "children"}


def flatten(elements: List[Element]) -> Dict[str, Dict[str, Any]]:
    return {
        element_id: {
            "parent_id": parent_id,
            "position": position,
            "element": without_children(element),
        }
        for element_id, parent_id, position, element in walk(elements)
    }


def _locate(elements: List[Element], element_id: str) -> Tuple[List[Element], int]:
    found = _search(elements, element_id)
    if found is None:
        raise NotFoundError(f"element를 찾을 수 없습니다: {element_id}")
    return found


def _search(elements: List[Element], element_id: str) -> Optional[Tuple[List[Element], int]]:
    for index, element in enumerate(elements):
        if element.get("id") == element_id:
            return elements, index
        found = _search(element.get("children") or [], element_id)
        if found is not None:
            return found
    return None


def find_element(elements: List[Element], element_id: str) -> Element:
    siblings, index = _locate(elements, element_id)
    return siblings[index]


def _children_of(tree: List[Element], parent_id: Optional[str]) -> List[Element]:
    if parent_id is None:
        return tree
    parent = find_element(tree, parent_id)
    parent.setdefault("children", [])
    return parent["children"]


def insert_element(
    elements: List[Element],
    element: Element,
    parent_id: Optional[str] = None,
    position: Optional[int] = None,
) -> Tuple[List[Element], Element]:
    tree = copy.deepcopy(elements or [])
    new = normalize_elements([element])[0]
    existing = {element_id for element_id, _, _, _ in walk(tree)}
    if any(element_id in existing for element_id, _, _, _ in walk([new])):
        raise ValidationError(f"이미 존재하는 element id 입니다: {new['id']}")
    siblings = _children_of(tree, parent_id)
    if position is None or position > len(siblings):
        position = len(siblings)
    siblings.insert(max(position, 0), new)
    return tree, new


def update_element(elements: List[Element], element_id: str, changes: Dict[str, Any]) -> Tuple[List[Element], Element]:
    tree = copy.deepcopy(elements or [])
    target = find_element(tree, element_id)
    for key in ("type", "data"):
        if key in changes and changes[key] is not None:
            target[key] = copy.deepcopy(changes[key])
    return tree, target


def remove_element(elements: List[Element], element_id: str) -> List[Element]:
    tree = copy.deepcopy(elements or [])
    siblings, index = _locate(tree, element_id)
    siblings.pop(index)
    return tree


def move_element(
    elements: List[Element],
    element_id: str,
    new_parent_id: Optional[str],
    new_position: int,
) -> List[Element]:
    tree = copy.deepcopy(elements or [])
    siblings, index = _locate(tree, element_id)
    target = siblings[index]
    if new_parent_id is not None:
        subtree_ids = {sub_id for sub_id, _, _, _ in walk([target])}
        if new_parent_id in subtree_ids:
            raise ValidationError("element를 자기 자신의 하위로 이동할 수 없습니다.")
    siblings.pop(index)
    destination = _children_of(tree, new_parent_id)
    destination.insert(max(0, min(new_position, len(destination))), target)
    return tree


def _serialize(element: Element) -> str:
    return json.dumps(element, sort_keys=True, ensure_ascii=False)


def _common_positions(elements: List[Element], common: set) -> Dict[str, Tuple[Optional[str], int]]:
    # 양쪽 버전에 모두 있는 형제들 사이의 순서만 본다. 추가/삭제로 밀린 위치는 이동이 아니다.
    counters: Dict[Optional[str], int] = {}
    positions = {}
    for element_id, parent_id, _position, _element in walk(elements):
        if element_id not in common:
            continue
        index = counters.get(parent_id, 0)
        positions[element_id] = (parent_id, index)
        counters[parent_id] = index + 1
    return positions


def diff_elements(from_elements: List[Element], to_elements: List[Element]) -> Dict[str, List[Dict[str, Any]]]:
    before = flatten(from_elements)
    after = flatten(to_elements)
    common = set(before) & set(after)

    added = [after[i]["element"] for i in after if i not in before]
    removed = [before[i]["element"] for i in before if i not in after]

    changed = []
    unchanged = set()
    for element_id in (i for i in after if i in common):
        old, new = before[element_id]["element"], after[element_id]["element"]
        if _serialize(old) != _serialize(new):
            changed.append({"id": element_id, "from": old, "to": new})
        else:
            unchanged.add(element_id)

    from_positions = _common_positions(from_elements, common)
    to_positions = _common_positions(to_elements, common)
    moved = []
    for element_id in (i for i in after if i in unchanged):
        from_parent, from_index = from_positions[element_id]
        to_parent, to_index = to_positions[element_id]
        if from_parent != to_parent or from_index != to_index:
            moved.append({
                "id": element_id,
                "from_parent_id": from_parent,
                "to_parent_id": to_parent,
                "from_position": from_index,
                "to_position": to_index,
                "delta": to_index - from_index,
            })

    return {"added": added, "removed": removed, "changed": changed, "moved": moved}


def diff_metadata(from_meta: Dict[str, Any], to_meta: Dict[str, Any]) -> Dict[str, Any]:
    from_meta = from_meta or {}
    to_meta = to_meta or {}
    return {
        "added": {k: to_meta[k] for k in to_meta if k not in from_meta},
        "removed": {k: from_meta[k] for k in from_meta if k not in to_meta},
        "changed": {
            k: {"from": from_meta[k], "to": to_meta[k]}
            for k in to_meta
            if k in from_meta and _serialize_value(from_meta[k]) != _serialize_value(to_meta[k])
        },
    }


def _serialize_value(value: Any) -> str:
    return json.dumps(value, sort_keys=True, ensure_ascii=False)
