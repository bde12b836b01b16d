from swifty.cli import app

app(prog_name="swifty")
