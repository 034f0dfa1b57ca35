"""런타임 스키마 동기화 유틸리티."""

from __future__ import annotations

import logging
from typing import List

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.schema import Column, CreateIndex, MetaData
from sqlalchemy.sql.elements import TextClause

logger = logging.getLogger(__name__)


def _column_ddl(engine: Engine, column: Column) -> str:
    # 기존 행이 있는 테이블에 추가되므로 상수 기본값이 없으면 NULL 허용으로 추가하고 backfill 한다.
    preparer = engine.dialect.identifier_preparer
    parts = [preparer.format_column(column), column.type.compile(dialect=engine.dialect)]
    default = column.server_default.arg if column.server_default is not None else None
    if isinstance(default, str):
        parts.append(f"DEFAULT '{default}'")
    elif isinstance(default, TextClause):
        parts.append(f"DEFAULT {default.text}")
    else:
        return " ".join(parts)
    if not column.nullable:
        parts.append("NOT NULL")
    return " ".join(parts)


def sync_missing_schema_objects(engine: Engine, metadata: MetaData) -> List[str]:
    """모델 메타데이터 기준으로 누락된 컬럼/인덱스를 DB에 추가하고 추가한 객체 이름을 돌려준다."""
    inspector = inspect(engine)
    existing_tables = set(inspector.get_table_names())
    preparer = engine.dialect.identifier_preparer
    added: List[str] = []

    with engine.begin() as conn:
        for table in metadata.sorted_tables:
            if table.name not in existing_tables:
                continue

            existing_columns = {
                str(row.get("name"))
                for row in inspector.get_columns(table.name)
                if row.get("name")
            }
            table_sql = preparer.format_table(table)

            for column in table.columns:
                if column.name in existing_columns:
                    continue
                conn.execute(text(f"ALTER TABLE {table_sql} ADD COLUMN {_column_ddl(engine, column)}"))
                added.append(f"{table.name}.{column.name}")

            existing_index_names = {
                str(row.get("name"))
                for row in inspector.get_indexes(table.name)
                if row.get("name")
            }
            for index in table.indexes:
                if not index.name or index.name in existing_index_names:
                    continue
                conn.execute(CreateIndex(index))
                added.append(index.name)

    for name in added:
        logger.info("[migrate] added schema object %s", name)
    return added
