"""ASGI entry point for the flow engine."""

from .config import load_config
from .factory import create_app

config = load_config()
app = create_app(config)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=config.host, port=config.port)
