from aprovafacil.admin.schema_validation import ExpectedColumn, normalize_data_type, validate_schema

EXPECTED = {
    "users": {
        "id": ExpectedColumn("uuid", nullable=False),
        "email": ExpectedColumn("character varying", nullable=False),
        "last_login": ExpectedColumn("timestamp with time zone"),
    },
    "cache_config": {
        "id": ExpectedColumn("uuid", nullable=False),
        "ttl_minutes": ExpectedColumn("integer", nullable=False),
    },
}


def row(table, column, data_type, nullable="NO"):
    return {"table_name": table, "column_name": column, "data_type": data_type,
            "is_nullable": nullable, "column_default": None}


def matching_rows():
    return [
        row("users", "id", "uuid"),
        row("users", "email", "character varying"),
        row("users", "last_login", "timestamp with time zone", "YES"),
        row("cache_config", "id", "uuid"),
        row("cache_config", "ttl_minutes", "integer"),
    ]


def test_normalize_data_type_aliases():
    assert normalize_data_type("character varying") == normalize_data_type("varchar")
    assert normalize_data_type("timestamp with time zone") == normalize_data_type("timestamptz")
    assert normalize_data_type("INTEGER") == normalize_data_type("int4")


def test_matching_schema_is_valid():
    result = validate_schema(matching_rows(), EXPECTED)
    assert result["isValid"] is True
    assert result["errors"] == []
    assert result["warnings"] == []
    assert result["summary"]["validTables"] == 2
    assert result["summary"]["validColumns"] == 5
    assert result["tables"]["users"]["columns"]["last_login"]["nullable"] is True


def test_missing_table_and_column_are_errors():
    rows = [r for r in matching_rows() if r["table_name"] != "cache_config" and r["column_name"] != "email"]
    result = validate_schema(rows, EXPECTED)

    assert result["isValid"] is False
    assert "TABELA FALTANDO: A tabela 'cache_config' não existe no banco de dados" in result["errors"]
    assert "COLUNA FALTANDO: A coluna 'email' não existe na tabela 'users'" in result["errors"]
    assert result["summary"]["missingTables"] == ["cache_config"]
    assert result["summary"]["missingColumns"] == ["users.email"]
    assert result["tables"]["users"]["columns"]["email"]["type"] == "MISSING"


def test_type_and_nullable_conflicts_are_warnings():
    rows = matching_rows()
    rows[4] = row("cache_config", "ttl_minutes", "bigint", "YES")
    result = validate_schema(rows, EXPECTED)

    assert result["isValid"] is True
    assert "CONFLITO DE TIPO: cache_config.ttl_minutes - Esperado: integer, Atual: bigint" in result["warnings"]
    assert "CONFLITO NULLABLE: cache_config.ttl_minutes - Esperado: NOT NULL, Atual: NULL" in result["warnings"]
    assert result["summary"]["typeConflicts"] == ["cache_config.ttl_minutes"]


def test_extra_table_and_column_are_warnings():
    rows = matching_rows() + [row("users", "apelido", "text", "YES"), row("legacy", "id", "integer")]
    result = validate_schema(rows, EXPECTED)

    assert result["isValid"] is True
    assert any(w.startswith("COLUNA EXTRA: A coluna 'apelido'") for w in result["warnings"])
    assert any(w.startswith("TABELA EXTRA: A tabela 'legacy'") for w in result["warnings"])
