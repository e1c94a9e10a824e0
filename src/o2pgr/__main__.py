from .cli import app

app(prog_name="o2pgr")
