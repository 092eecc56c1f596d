"""Entry point: `python app.py` runs the EasyDoor API on PORT (default 8009)."""

import importlib

from config import get_settings_module

from src.easydoor.easydoor.main import create_app

app = create_app()


if __name__ == "__main__":
    settings = importlib.import_module(get_settings_module())
    app.run(host="0.0.0.0", port=int(getattr(settings, "PORT", 8009)), debug=bool(getattr(settings, "DEBUG", False)))
