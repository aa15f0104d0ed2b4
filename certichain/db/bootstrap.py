# certichain/db/bootstrap.py
import os

from alembic import command
from alembic.config import Config

BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))


def run_migrations() -> None:
    # point explicitly at alembic.ini and migrations/
    cfg = Config(os.path.join(BASE_DIR, "alembic.ini"))
    cfg.set_main_option("script_location", os.path.join(BASE_DIR, "migrations"))
    command.upgrade(cfg, "head")
