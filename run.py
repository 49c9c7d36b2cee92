from accessgate.app import create_app
from accessgate.core.config.settings import settings

"""
Served with: uvicorn run:app
"""
app = create_app(settings)
