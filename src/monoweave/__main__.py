from monoweave.cli.main import app

app(prog_name="monoweave")
