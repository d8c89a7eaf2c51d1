# sharecare

A small threaded HTTP server for a charity marketplace. It serves static
front-end files from a directory and answers a JSON API backed by an SQLite
database. Only the Python standard library is needed at run time.

## Installation

```
pip install .
```

## Running the server

```
sharecare
```

Options:

- `--host` – address to listen on (default: every interface)
- `--port` – port to listen on (default: 8080)
- `--db` – SQLite database file (default: `sharecare.db`)
- `--root` – directory the static files are read from (default: `.`)

On start-up the tables `Ente_Benefico`, `Articolo_Solidale` and `PostBlog` are
created if they are not there yet; if that fails the command prints
`[ERRORE] Inizializzazione DB fallita` and exits with status 1. The server then
runs until interrupted. Each connection is handled on its own thread with its
own database connection, and is logged to standard output with a running
number, the time and the client address, together with debug lines for each
request and response.

Each connection is answered once: the request is read in a single read of at
most 8191 bytes, and the connection is closed after the response.

## Static files

A `GET` whose path contains `.html`, `.css`, `.js`, `.png` or `.jpg`, or that
is exactly `/`, is answered with a file from the root directory; `/` maps to
`index.html`. Any query string is dropped first. The content type is chosen
from the extension found in the name (`text/html`, `text/css`,
`application/javascript`, `image/png`, `image/jpeg`, otherwise `text/plain`).
A missing file gives `404 Not Found` with the text `File non trovato`.

## API

| Method | Path         | Body                                                           | Result |
|--------|--------------|----------------------------------------------------------------|--------|
| GET    | `/enti`      |                                                                | `200`, JSON array of charities |
| POST   | `/enti`      | `{"Nome":"...","Descrizione":"...","Sede":"..."}`              | `201`; `400` if the body or `Nome` is missing |
| GET    | `/articoli`  |                                                                | `200`, JSON array of solidarity items, prices with two decimals |
| POST   | `/donazioni` | `{"ID_Utente":1,"ID_Ente":2,"Importo":10.5}`                   | `201`; `400` if the body is missing, an id is zero or the amount is not positive; `500` if the insert fails |
| POST   | `/checkout`  | `{"tipo":"acquisto","id_ente":3,"id_articolo":5,"email":"user@example.com","importo":25.0,"indirizzo":"..."}` | `200`; status `500` with `DB error` if the insert fails |
| GET    | `/blog`      |                                                                | `200`, JSON array of blog posts |
| POST   | `/blog`      | `{"Nome":"...","Messaggio":"..."}`                             | `201`; `400` with `JSON non valido` unless both fields are read |

Request bodies are not parsed as general JSON: they must be written exactly in
the form shown, with the fields in that order and no spaces between them.
Text values cannot contain `"`. Reading stops at the first part that does not
match; fields after it are left empty or zero. For `/checkout`, the article id
and the address are stored only when `tipo` is `acquisto`.

Any other method or path returns `404 Not Found` with `Risorsa non trovata`.
API responses carry `Access-Control-Allow-Origin: *`; every response carries
`Content-Length` and `Connection: close`.

## What it does not do

- The schema it creates has no `Donazione` or `Transazione` table, so on a
  database set up only by this package `POST /donazioni` and `POST /checkout`
  fail with `500`. They work once those tables exist in the database file.
- `GET /enti` reads a `Logo` column that the created `Ente_Benefico` table does
  not have; on such a database the query fails and the answer is `[]`.
- There is no way through the API to add solidarity items, nor to update or
  delete anything.
- There is no authentication and no HTTPS.

## Using it as a library

```python
from sharecare.database import Database

with Database("sharecare.db") as db:
    db.init_schema()
    db.insert_post("Anna", "Grazie a tutti!")
    print(db.blog_json())
```

`sharecare.database.Database` wraps one SQLite connection: `init_schema()`,
`enti_json()`, `articoli_json()`, `blog_json()`, and the inserts
`insert_ente`, `insert_donazione`, `insert_post` and `insert_transazione`,
which return the new row id and raise `DatabaseError` on failure.

`sharecare.server.ShareCareApp(db_path, root)` turns raw request bytes into a
`Response` through `handle()`, so the routing can be used without a socket;
`Response.to_bytes()` gives the bytes to send. `sharecare.server.serve(app,
host, port)` runs the threaded server. The helpers `parse_request`,
`content_type_for`, `is_static_path`, `parse_ente`, `parse_donazione`,
`parse_checkout` and `parse_post` are available on their own.