"""SQLite storage for charities, solidarity items, blog posts and payments."""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Callable, Iterable
from typing import Any

DEFAULT_PATH = "sharecare.db"

SCHEMA = """
CREATE TABLE IF NOT EXISTS Ente_Benefico (
    ID_Ente INTEGER PRIMARY KEY AUTOINCREMENT,
    Nome TEXT NOT NULL,
    Descrizione TEXT,
    Sede TEXT
);

CREATE TABLE IF NOT EXISTS Articolo_Solidale (
    ID_Articolo INTEGER PRIMARY KEY AUTOINCREMENT,
    Nome TEXT NOT NULL,
    Descrizione TEXT,
    Prezzo REAL,
    Quantita INTEGER,
    Foto TEXT,
    ID_Ente INTEGER,
    FOREIGN KEY(ID_Ente) REFERENCES Ente_Benefico(ID_Ente)
);

CREATE TABLE IF NOT EXISTS PostBlog (
    ID_Post   INTEGER PRIMARY KEY AUTOINCREMENT,
    Nome      TEXT    NOT NULL,
    Messaggio TEXT    NOT NULL,
    Data      TEXT DEFAULT CURRENT_TIMESTAMP
);
"""

_ENTI_SQL = (
    "SELECT ID_Ente, Nome, COALESCE(Descrizione, ''), COALESCE(Sede, ''), "
    "COALESCE(Logo, '') FROM Ente_Benefico;"
)
_ARTICOLI_SQL = (
    "SELECT ID_Articolo, Nome, COALESCE(Descrizione,''), Prezzo, Quantita, "
    "COALESCE(Foto,'') FROM Articolo_Solidale;"
)
_BLOG_SQL = (
    "SELECT ID_Post, Nome, COALESCE(Messaggio, ''), COALESCE(Data, '') "
    "FROM PostBlog;"
)


class DatabaseError(Exception):
    """Raised when the database cannot be opened, initialised or written."""


def _compact(obj: Any) -> str:
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False)


def _ente_record(row: tuple) -> str:
    id_ente, nome, descrizione, sede, logo = row
    return _compact(
        {
            "ID_Ente": id_ente,
            "Nome": nome,
            "Descrizione": descrizione,
            "Sede": sede,
            "Logo": logo,
        }
    )


def _articolo_record(row: tuple) -> str:
    id_articolo, nome, descrizione, prezzo, quantita, foto = row
    prezzo = float(prezzo or 0.0)
    quantita = int(quantita or 0)
    return (
        f'{{"ID_Articolo":{int(id_articolo or 0)},'
        f'"Nome":{_compact(nome or "")},'
        f'"Descrizione":{_compact(descrizione or "")},'
        f'"Prezzo":{prezzo:.2f},'
        f'"Quantita":{quantita},'
        f'"Foto":{_compact(foto or "")}}}'
    )


def _post_record(row: tuple) -> str:
    id_post, nome, messaggio, data = row
    return _compact(
        {"ID_Post": id_post, "Nome": nome, "Messaggio": messaggio, "Data": data}
    )


class Database:
    """A connection to the ShareCare SQLite database."""

    def __init__(self, path: str = DEFAULT_PATH) -> None:
        try:
            self._conn = sqlite3.connect(path, isolation_level=None)
        except sqlite3.Error as exc:
            raise DatabaseError(str(exc)) from exc

    def __enter__(self) -> "Database":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying connection."""
        self._conn.close()

    def init_schema(self) -> None:
        """Create the tables if they do not exist yet."""
        try:
            self._conn.executescript(SCHEMA)
        except sqlite3.Error as exc:
            raise DatabaseError(f"SQLite error: {exc}") from exc

    def _json_array(self, sql: str, record: Callable[[tuple], str]) -> str:
        try:
            rows: Iterable[tuple] = self._conn.execute(sql).fetchall()
        except sqlite3.Error:
            return "[]"
        return "[" + ",".join(record(row) for row in rows) + "]"

    def enti_json(self) -> str:
        """All charities as a JSON array; "[]" if the query cannot run."""
        return self._json_array(_ENTI_SQL, _ente_record)

    def articoli_json(self) -> str:
        """All solidarity items as a JSON array, prices with two decimals."""
        return self._json_array(_ARTICOLI_SQL, _articolo_record)

    def blog_json(self) -> str:
        """All blog posts as a JSON array."""
        return self._json_array(_BLOG_SQL, _post_record)

    def _insert(self, sql: str, params: tuple) -> int:
        try:
            cursor = self._conn.execute(sql, params)
        except sqlite3.Error as exc:
            raise DatabaseError(str(exc)) from exc
        return cursor.lastrowid

    def insert_ente(self, nome: str, descrizione: str, sede: str) -> int:
        """Insert a charity and return its id."""
        return self._insert(
            "INSERT INTO Ente_Benefico (Nome,Descrizione,Sede) VALUES (?,?,?);",
            (nome, descrizione, sede),
        )

    def insert_donazione(self, id_utente: int, id_ente: int, importo: float) -> int:
        """Record a donation and return its row id."""
        return self._insert(
            "INSERT INTO Donazione (ID_Utente, ID_Ente, Importo) VALUES (?, ?, ?);",
            (int(id_utente), int(id_ente), float(importo)),
        )

    def insert_post(self, nome: str, messaggio: str) -> int:
        """Insert a blog post and return its id."""
        return self._insert(
            "INSERT INTO PostBlog (Nome, Messaggio) VALUES (?,?);",
            (nome, messaggio),
        )

    def insert_transazione(
        self,
        tipo: str,
        id_ente: int,
        id_articolo: int,
        email: str,
        importo: float,
        indirizzo: str,
    ) -> int:
        """Record a checkout; item and address are kept only for purchases."""
        acquisto = tipo == "acquisto"
        return self._insert(
            "INSERT INTO Transazione (Tipo,ID_Ente,ID_Articolo,Email,Importo,Indirizzo)"
            "VALUES (?,?,?,?,?,?);",
            (
                tipo,
                int(id_ente),
                int(id_articolo) if acquisto else None,
                email,
                float(importo),
                indirizzo if acquisto else None,
            ),
        )