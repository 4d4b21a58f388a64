from repodoc.cli import app

app()
