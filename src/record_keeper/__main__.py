from record_keeper.cli import app

app()
