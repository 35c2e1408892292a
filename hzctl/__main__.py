from hzctl.cli import run

run()
