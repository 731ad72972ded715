from appdetect.cli import app

app(prog_name="appdetect")
