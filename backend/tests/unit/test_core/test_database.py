from datetime import datetime, timezone, timedelta

from aprovafacil.core.database import as_utc, engine, get_db


def test_engine_exists():
    # Apenas valida que o engine foi importado e possui atributos básicos
    assert hasattr(engine, "connect")


def test_get_db_yields_and_closes(monkeypatch):
    calls = {"closed": False}

    class DummySession:
        def close(self):
            calls["closed"] = True

    def dummy_sessionlocal():
        return DummySession()

    monkeypatch.setattr("aprovafacil.core.database.SessionLocal", dummy_sessionlocal)

    gen = get_db()
    db = next(gen)
    assert isinstance(db, DummySession)

    try:
        next(gen)
    except StopIteration:
        pass

    assert calls["closed"] is True


def test_as_utc_marks_naive_datetimes():
    naive = datetime(2025, 3, 1, 12, 0)
    assert as_utc(naive).tzinfo == timezone.utc

    aware = datetime(2025, 3, 1, 12, 0, tzinfo=timezone(timedelta(hours=-3)))
    assert as_utc(aware) is aware
    assert as_utc(None) is None
