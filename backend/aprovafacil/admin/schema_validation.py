"""
Validação do schema do banco contra as tabelas que o código espera.

``EXPECTED_SCHEMA`` usa os nomes de tipo do ``information_schema`` do
PostgreSQL. A comparação em si (``validate_schema``) é pura: recebe as linhas
de colunas já lidas do banco, o que permite validar qualquer fonte.

Tabela ou coluna faltando é erro e invalida o schema; divergência de tipo,
de nullable, coluna extra ou tabela extra é apenas aviso.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping

from sqlalchemy import inspect, text
from sqlalchemy.orm import Session

UUID = "uuid"
VARCHAR = "character varying"
TEXT = "text"
INTEGER = "integer"
NUMERIC = "numeric"
BOOLEAN = "boolean"
DATE = "date"
TIMESTAMPTZ = "timestamp with time zone"
JSONB = "jsonb"


@dataclass(frozen=True)
class ExpectedColumn:
    type: str
    nullable: bool = True


def _pk() -> ExpectedColumn:
    return ExpectedColumn(UUID, nullable=False)


def _required(type_: str) -> ExpectedColumn:
    return ExpectedColumn(type_, nullable=False)


def _optional(type_: str) -> ExpectedColumn:
    return ExpectedColumn(type_, nullable=True)


EXPECTED_SCHEMA: Dict[str, Dict[str, ExpectedColumn]] = {
    "users": {
        "id": _pk(),
        "email": _required(VARCHAR),
        "name": _required(VARCHAR),
        "password_hash": _required(VARCHAR),
        "role": _required(VARCHAR),
        "total_questions_answered": _optional(INTEGER),
        "total_correct_answers": _optional(INTEGER),
        "study_time_minutes": _optional(INTEGER),
        "average_score": _optional(NUMERIC),
        "last_login": _optional(TIMESTAMPTZ),
        "created_at": _optional(TIMESTAMPTZ),
        "updated_at": _optional(TIMESTAMPTZ),
    },
    "concurso_categorias": {
        "id": _pk(),
        "nome": _required(VARCHAR),
        "slug": _required(VARCHAR),
        "descricao": _optional(TEXT),
        "cor_primaria": _optional(VARCHAR),
        "cor_secundaria": _optional(VARCHAR),
        "is_active": _required(BOOLEAN),
        "created_at": _optional(TIMESTAMPTZ),
        "updated_at": _optional(TIMESTAMPTZ),
    },
    "categoria_disciplinas": {
        "id": _pk(),
        "categoria_id": _required(UUID),
        "nome": _required(VARCHAR),
        "peso": _required(INTEGER),
        "horas_semanais": _required(INTEGER),
        "ordem": _required(INTEGER),
        "is_active": _required(BOOLEAN),
        "created_at": _optional(TIMESTAMPTZ),
    },
    "concursos": {
        "id": _pk(),
        "nome": _required(VARCHAR),
        "descricao": _optional(TEXT),
        "ano": _optional(INTEGER),
        "banca": _optional(VARCHAR),
        "categoria_id": _optional(UUID),
        "edital_url": _optional(VARCHAR),
        "data_prova": _optional(DATE),
        "vagas": _optional(INTEGER),
        "salario": _optional(NUMERIC),
        "is_active": _required(BOOLEAN),
        "created_at": _optional(TIMESTAMPTZ),
        "updated_at": _optional(TIMESTAMPTZ),
    },
    "simulados": {
        "id": _pk(),
        "title": _required(VARCHAR),
        "slug": _required(VARCHAR),
        "description": _optional(TEXT),
        "questions_count": _required(INTEGER),
        "time_minutes": _required(INTEGER),
        "difficulty": _required(VARCHAR),
        "concurso_id": _optional(UUID),
        "categoria_id": _optional(UUID),
        "disciplinas": _optional(JSONB),
        "is_public": _required(BOOLEAN),
        "created_by": _optional(UUID),
        "created_at": _optional(TIMESTAMPTZ),
        "updated_at": _optional(TIMESTAMPTZ),
        "deleted_at": _optional(TIMESTAMPTZ),
    },
    "simulado_questions": {
        "id": _pk(),
        "simulado_id": _required(UUID),
        "question_number": _required(INTEGER),
        "question_text": _required(TEXT),
        "alternatives": _required(JSONB),
        "correct_answer": _required(VARCHAR),
        "explanation": _optional(TEXT),
        "discipline": _optional(VARCHAR),
        "topic": _optional(VARCHAR),
        "difficulty": _optional(VARCHAR),
        "concurso_id": _optional(UUID),
        "created_at": _optional(TIMESTAMPTZ),
        "deleted_at": _optional(TIMESTAMPTZ),
    },
    "user_simulado_progress": {
        "id": _pk(),
        "user_id": _required(UUID),
        "simulado_id": _required(UUID),
        "score": _required(INTEGER),
        "time_taken_minutes": _required(INTEGER),
        "answers": _required(JSONB),
        "started_at": _optional(TIMESTAMPTZ),
        "completed_at": _optional(TIMESTAMPTZ),
    },
    "cartoes_memorizacao": {
        "id": _pk(),
        "front": _required(TEXT),
        "back": _required(TEXT),
        "tema": _optional(VARCHAR),
        "subtema": _optional(VARCHAR),
        "disciplina": _required(VARCHAR),
        "concurso_id": _optional(UUID),
        "categoria_id": _optional(UUID),
        "peso_disciplina": _optional(INTEGER),
        "created_at": _optional(TIMESTAMPTZ),
    },
    "user_flashcard_progress": {
        "id": _pk(),
        "user_id": _required(UUID),
        "flashcard_id": _required(UUID),
        "status": _required(VARCHAR),
        "next_review": _optional(TIMESTAMPTZ),
        "review_count": _required(INTEGER),
        "created_at": _optional(TIMESTAMPTZ),
        "updated_at": _optional(TIMESTAMPTZ),
    },
    "apostila_inteligente": {
        "id": _pk(),
        "title": _required(VARCHAR),
        "slug": _required(VARCHAR),
        "description": _optional(TEXT),
        "concurso_id": _optional(UUID),
        "categoria_id": _optional(UUID),
        "disciplinas": _optional(JSONB),
        "created_by": _optional(UUID),
        "created_at": _optional(TIMESTAMPTZ),
    },
    "apostila_content": {
        "id": _pk(),
        "apostila_id": _required(UUID),
        "module_number": _required(INTEGER),
        "title": _required(VARCHAR),
        "content_json": _required(JSONB),
        "concurso_id": _optional(UUID),
        "created_at": _optional(TIMESTAMPTZ),
    },
    "user_apostila_progress": {
        "id": _pk(),
        "user_id": _required(UUID),
        "apostila_content_id": _required(UUID),
        "completed": _required(BOOLEAN),
        "progress_percentage": _required(INTEGER),
        "updated_at": _optional(TIMESTAMPTZ),
    },
    "questoes_semanais": {
        "id": _pk(),
        "title": _required(VARCHAR),
        "description": _optional(TEXT),
        "week_number": _required(INTEGER),
        "year": _required(INTEGER),
        "concurso_id": _optional(UUID),
        "questions": _required(JSONB),
        "created_at": _optional(TIMESTAMPTZ),
    },
    "user_questoes_semanais_progress": {
        "id": _pk(),
        "user_id": _required(UUID),
        "questoes_semanais_id": _required(UUID),
        "score": _required(INTEGER),
        "answers": _required(JSONB),
        "completed_at": _optional(TIMESTAMPTZ),
    },
    "mapa_assuntos": {
        "id": _pk(),
        "disciplina": _required(VARCHAR),
        "tema": _required(VARCHAR),
        "subtema": _optional(VARCHAR),
        "concurso_id": _optional(UUID),
        "categoria_id": _optional(UUID),
        "peso_disciplina": _optional(INTEGER),
        "created_at": _optional(TIMESTAMPTZ),
    },
    "user_mapa_assuntos_status": {
        "id": _pk(),
        "user_id": _required(UUID),
        "mapa_assunto_id": _required(UUID),
        "status": _required(VARCHAR),
        "updated_at": _optional(TIMESTAMPTZ),
    },
    "planos_estudo": {
        "id": _pk(),
        "user_id": _required(UUID),
        "concurso_id": _optional(UUID),
        "start_date": _required(DATE),
        "end_date": _required(DATE),
        "schedule": _required(JSONB),
        "created_at": _optional(TIMESTAMPTZ),
    },
    "user_concurso_preferences": {
        "id": _pk(),
        "user_id": _required(UUID),
        "concurso_id": _required(UUID),
        "selected_at": _required(TIMESTAMPTZ),
        "can_change_until": _required(TIMESTAMPTZ),
        "is_active": _required(BOOLEAN),
        "created_at": _optional(TIMESTAMPTZ),
        "updated_at": _optional(TIMESTAMPTZ),
    },
    "user_discipline_stats": {
        "id": _pk(),
        "user_id": _required(UUID),
        "disciplina": _required(VARCHAR),
        "total_questions": _required(INTEGER),
        "correct_answers": _required(INTEGER),
        "average_score": _required(NUMERIC),
        "study_time_minutes": _required(INTEGER),
        "last_activity": _optional(TIMESTAMPTZ),
    },
    "user_performance_cache": {
        "id": _pk(),
        "user_id": _required(UUID),
        "cache_key": _required(VARCHAR),
        "cache_data": _required(JSONB),
        "expires_at": _required(TIMESTAMPTZ),
        "created_at": _optional(TIMESTAMPTZ),
        "updated_at": _optional(TIMESTAMPTZ),
    },
    "audit_logs": {
        "id": _pk(),
        "user_id": _optional(UUID),
        "action": _required(VARCHAR),
        "table_name": _required(VARCHAR),
        "record_id": _optional(UUID),
        "old_values": _optional(JSONB),
        "new_values": _optional(JSONB),
        "ip_address": _optional(VARCHAR),
        "user_agent": _optional(TEXT),
        "created_at": _optional(TIMESTAMPTZ),
    },
    "cache_config": {
        "id": _pk(),
        "cache_key": _required(VARCHAR),
        "description": _optional(TEXT),
        "ttl_minutes": _required(INTEGER),
        "created_at": _optional(TIMESTAMPTZ),
        "updated_at": _optional(TIMESTAMPTZ),
    },
}

_TYPE_ALIASES = {
    "character varying": "varchar",
    "timestamp with time zone": "timestamptz",
    "timestamp without time zone": "timestamp",
    "double precision": "float8",
    "bigint": "int8",
    "integer": "int4",
    "smallint": "int2",
    "boolean": "bool",
}

# Tipos refletidos pelo SQLAlchemy em bancos sem information_schema (ex.: SQLite)
_REFLECTED_TYPE_NAMES = {
    "VARCHAR": "character varying",
    "CHAR": "character",
    "TEXT": "text",
    "INTEGER": "integer",
    "BIGINT": "bigint",
    "SMALLINT": "smallint",
    "NUMERIC": "numeric",
    "FLOAT": "double precision",
    "BOOLEAN": "boolean",
    "DATE": "date",
    "DATETIME": "timestamp without time zone",
    "TIMESTAMP": "timestamp without time zone",
    "JSON": "json",
    "JSONB": "jsonb",
    "UUID": "uuid",
}


def normalize_data_type(type_name: str) -> str:
    lowered = (type_name or "").lower()
    return _TYPE_ALIASES.get(lowered, lowered)


def _group_by_table(rows: Iterable[Mapping]) -> Dict[str, Dict[str, Mapping]]:
    tables: Dict[str, Dict[str, Mapping]] = {}
    for row in rows:
        tables.setdefault(row["table_name"], {})[row["column_name"]] = row
    return tables


def validate_schema(rows: Iterable[Mapping], expected: Mapping[str, Mapping[str, ExpectedColumn]] = EXPECTED_SCHEMA) -> dict:
    """
    rows: dicts com table_name, column_name, data_type, is_nullable ("YES"/"NO")
    e column_default, como em information_schema.columns.
    """
    actual_tables = _group_by_table(rows)
    errors: List[str] = []
    warnings: List[str] = []
    tables: Dict[str, dict] = {}
    summary = {
        "totalTables": len(expected),
        "validTables": 0,
        "totalColumns": 0,
        "validColumns": 0,
        "missingTables": [],
        "missingColumns": [],
        "typeConflicts": [],
    }

    for table_name, expected_columns in expected.items():
        actual_columns = actual_tables.get(table_name)
        tables[table_name] = {"exists": actual_columns is not None, "columns": {}}

        if actual_columns is None:
            errors.append(f"TABELA FALTANDO: A tabela '{table_name}' não existe no banco de dados")
            summary["missingTables"].append(table_name)
            continue

        summary["validTables"] += 1

        for column_name, expected_column in expected_columns.items():
            summary["totalColumns"] += 1
            actual = actual_columns.get(column_name)
            tables[table_name]["columns"][column_name] = {
                "exists": actual is not None,
                "type": actual["data_type"] if actual else "MISSING",
                "nullable": bool(actual) and actual["is_nullable"] == "YES",
                "default": actual.get("column_default") if actual else None,
            }

            if actual is None:
                errors.append(f"COLUNA FALTANDO: A coluna '{column_name}' não existe na tabela '{table_name}'")
                summary["missingColumns"].append(f"{table_name}.{column_name}")
                continue

            summary["validColumns"] += 1

            if normalize_data_type(expected_column.type) != normalize_data_type(actual["data_type"]):
                warnings.append(
                    f"CONFLITO DE TIPO: {table_name}.{column_name} - "
                    f"Esperado: {expected_column.type}, Atual: {actual['data_type']}"
                )
                summary["typeConflicts"].append(f"{table_name}.{column_name}")

            actual_nullable = actual["is_nullable"] == "YES"
            if expected_column.nullable != actual_nullable:
                warnings.append(
                    f"CONFLITO NULLABLE: {table_name}.{column_name} - "
                    f"Esperado: {'NULL' if expected_column.nullable else 'NOT NULL'}, "
                    f"Atual: {'NULL' if actual_nullable else 'NOT NULL'}"
                )

        for column_name in actual_columns:
            if column_name not in expected_columns:
                warnings.append(
                    f"COLUNA EXTRA: A coluna '{column_name}' existe na tabela '{table_name}' "
                    f"mas não é esperada pelo código"
                )

    for table_name in actual_tables:
        if table_name not in expected:
            warnings.append(f"TABELA EXTRA: A tabela '{table_name}' existe no banco mas não é usada pelo código")

    return {
        "isValid": not errors,
        "errors": errors,
        "warnings": warnings,
        "tables": tables,
        "summary": summary,
    }


def _reflected_type_name(column_type) -> str:
    name = str(column_type).split("(")[0].strip().upper()
    return _REFLECTED_TYPE_NAMES.get(name, name.lower())


def fetch_actual_schema(db: Session) -> List[dict]:
    """Lê as colunas do banco: information_schema no PostgreSQL, inspector nos demais."""
    bind = db.get_bind()
    if bind.dialect.name == "postgresql":
        result = db.execute(text(
            "SELECT table_name, column_name, data_type, is_nullable, column_default "
            "FROM information_schema.columns WHERE table_schema = current_schema() "
            "ORDER BY table_name, ordinal_position"
        ))
        return [dict(row) for row in result.mappings()]

    inspector = inspect(bind)
    rows = []
    for table_name in inspector.get_table_names():
        for column in inspector.get_columns(table_name):
            rows.append({
                "table_name": table_name,
                "column_name": column["name"],
                "data_type": _reflected_type_name(column["type"]),
                "is_nullable": "YES" if column.get("nullable", True) else "NO",
                "column_default": column.get("default"),
            })
    return rows
