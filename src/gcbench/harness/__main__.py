# Copyright (c) Syntropy Systems
from gcbench.harness.cli import app

if __name__ == "__main__":
    app()
