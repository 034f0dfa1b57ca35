"""element id -> content 소유 인덱스를 head의 elements 트리와 동기화합니다."""

from sqlalchemy import delete, insert
from sqlalchemy.orm import Session

from content_engine.errors import ValidationError
from content_engine.models.content import Content, ContentElement
from content_engine.utils import element_tree

element_table = ContentElement.__table__


def sync_element_index(db: Session, content: Content) -> None:
    # ORM 엔티티를 만들지 않고 Core 문장으로만 다시 쓴다. 같은 id가 identity map과 충돌하지 않는다.
    rows = list(element_tree.walk(content.elements or []))
    element_ids = [row[0] for row in rows]
    if element_ids:
        taken = (
            db.query(ContentElement.element_id)
            .filter(
                ContentElement.element_id.in_(element_ids),
                ContentElement.content_id != content.content_id,
            )
            .first()
        )
        if taken:
            raise ValidationError(f"다른 콘텐츠가 사용 중인 element id 입니다: {taken[0]}")

    db.execute(delete(element_table).where(element_table.c.content_id == content.content_id))
    if rows:
        db.execute(
            insert(element_table),
            [
                {
                    "element_id": element_id,
                    "content_id": content.content_id,
                    "parent_id": parent_id,
                    "position": position,
                }
                for element_id, parent_id, position, _element in rows
            ],
        )
