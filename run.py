import logging
import os

from genericopenai import create_app

app = create_app()


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5050))
    host = os.environ.get("HOST", "127.0.0.1")

    logging.basicConfig(level=app.config["LOG_LEVEL"])
    print(f"Starting genericopenai on http://{host}:{port}")

    app.run(host=host, port=port, debug=False)
