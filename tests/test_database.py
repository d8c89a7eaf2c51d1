import json
import sqlite3

import pytest

from sharecare.database import Database, DatabaseError


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "test.db")


@pytest.fixture
def db(db_path):
    with Database(db_path) as database:
        database.init_schema()
        yield database


def _raw(db_path, sql, params=()):
    conn = sqlite3.connect(db_path)
    try:
        conn.execute(sql, params)
        conn.commit()
    finally:
        conn.close()


def test_init_schema_is_idempotent(db):
    db.init_schema()
    assert db.blog_json() == "[]"


def test_empty_tables_give_empty_arrays(db):
    assert db.articoli_json() == "[]"
    assert db.blog_json() == "[]"


def test_blog_round_trip(db):
    first = db.insert_post("Anna", "Ciao a tutti")
    second = db.insert_post("Luca", 'Dice "grazie"')
    posts = json.loads(db.blog_json())
    assert [p["ID_Post"] for p in posts] == [first, second]
    assert [p["Nome"] for p in posts] == ["Anna", "Luca"]
    assert posts[1]["Messaggio"] == 'Dice "grazie"'
    assert all(p["Data"] for p in posts)


def test_blog_keys_in_order(db):
    db.insert_post("Anna", "Ciao")
    text = db.blog_json()
    assert text.startswith('[{"ID_Post":')
    assert list(json.loads(text)[0]) == ["ID_Post", "Nome", "Messaggio", "Data"]


def test_enti_without_logo_column_is_empty(db):
    db.insert_ente("Caritas", "Aiuti", "Roma")
    assert db.enti_json() == "[]"


def test_enti_with_logo_column(db, db_path):
    _raw(db_path, "ALTER TABLE Ente_Benefico ADD COLUMN Logo TEXT")
    ente_id = db.insert_ente("Caritas", None, "Roma")
    enti = json.loads(db.enti_json())
    assert enti == [
        {
            "ID_Ente": ente_id,
            "Nome": "Caritas",
            "Descrizione": "",
            "Sede": "Roma",
            "Logo": "",
        }
    ]


def test_insert_ente_ids_increase(db):
    first = db.insert_ente("A", "", "")
    second = db.insert_ente("B", "", "")
    assert second > first


def test_insert_ente_without_name_fails(db):
    with pytest.raises(DatabaseError):
        db.insert_ente(None, "x", "y")


def test_articoli_format(db, db_path):
    _raw(
        db_path,
        "INSERT INTO Articolo_Solidale (Nome, Descrizione, Prezzo, Quantita, Foto) "
        "VALUES (?,?,?,?,?)",
        ("Tazza", None, 12.5, 3, "tazza.png"),
    )
    text = db.articoli_json()
    assert '"Prezzo":12.50' in text
    items = json.loads(text)
    assert items == [
        {
            "ID_Articolo": 1,
            "Nome": "Tazza",
            "Descrizione": "",
            "Prezzo": 12.5,
            "Quantita": 3,
            "Foto": "tazza.png",
        }
    ]


def test_articoli_null_numbers_become_zero(db, db_path):
    _raw(db_path, "INSERT INTO Articolo_Solidale (Nome) VALUES (?)", ("Penna",))
    text = db.articoli_json()
    assert '"Prezzo":0.00' in text
    assert json.loads(text)[0]["Quantita"] == 0


def test_donazione_without_table_fails(db):
    with pytest.raises(DatabaseError):
        db.insert_donazione(1, 1, 10.0)


def test_donazione_with_table(db, db_path):
    _raw(
        db_path,
        "CREATE TABLE Donazione (ID INTEGER PRIMARY KEY, ID_Utente INTEGER, "
        "ID_Ente INTEGER, Importo REAL)",
    )
    donazione_id = db.insert_donazione(4, 2, 15.5)
    conn = sqlite3.connect(db_path)
    rows = conn.execute(
        "SELECT ID, ID_Utente, ID_Ente, Importo FROM Donazione"
    ).fetchall()
    conn.close()
    assert rows == [(donazione_id, 4, 2, 15.5)]


def test_transazione_without_table_fails(db):
    with pytest.raises(DatabaseError):
        db.insert_transazione("donazione", 1, 0, "user@example.com", 5.0, "")


@pytest.mark.parametrize(
    "tipo, expected_art, expected_addr",
    [("acquisto", 5, "Via Roma 1"), ("donazione", None, None)],
)
def test_transazione_purchase_fields(db, db_path, tipo, expected_art, expected_addr):
    _raw(
        db_path,
        "CREATE TABLE Transazione (ID INTEGER PRIMARY KEY, Tipo TEXT, ID_Ente INTEGER, "
        "ID_Articolo INTEGER, Email TEXT, Importo REAL, Indirizzo TEXT)",
    )
    db.insert_transazione(tipo, 3, 5, "user@example.com", 25.0, "Via Roma 1")
    conn = sqlite3.connect(db_path)
    row = conn.execute(
        "SELECT Tipo, ID_Ente, ID_Articolo, Email, Importo, Indirizzo FROM Transazione"
    ).fetchone()
    conn.close()
    assert row == (tipo, 3, expected_art, "user@example.com", 25.0, expected_addr)


def test_data_persists_across_connections(db_path):
    with Database(db_path) as first:
        first.init_schema()
        first.insert_post("Anna", "Persistente")
    with Database(db_path) as second:
        posts = json.loads(second.blog_json())
    assert [p["Messaggio"] for p in posts] == ["Persistente"]


def test_open_bad_path_fails(tmp_path):
    with pytest.raises(DatabaseError):
        Database(str(tmp_path / "missing" / "dir" / "x.db"))


def test_closed_database_returns_empty_json(db_path):
    database = Database(db_path)
    database.init_schema()
    database.insert_post("Anna", "Ciao")
    database.close()
    assert database.blog_json() == "[]"
    with pytest.raises(DatabaseError):
        database.insert_post("Luca", "Ciao")