# app.py (gunicorn / flask entry point)

import atexit

from mazao import create_app
from mazao.mongo import STORE_KEY

app = create_app()

# the store is built by the factory; release the client on shutdown
atexit.register(app.extensions[STORE_KEY].close)


# Local run only
if __name__ == "__main__":
    app.run(host="0.0.0.0", port=5000, debug=app.config["APP_ENV"] == "development")
