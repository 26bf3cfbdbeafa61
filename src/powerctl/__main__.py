from powerctl.cli import app

app(prog_name="powerctl")
