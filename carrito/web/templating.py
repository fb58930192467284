from pathlib import Path

from fastapi.templating import Jinja2Templates

from carrito.core.config import settings

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.globals["shop_name"] = settings.SHOP_NAME
