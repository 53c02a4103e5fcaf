# wsgi.py
import os
from app import create_app

app = create_app()

# Local dev only: `python wsgi.py`
if __name__ == "__main__":
    port = int(os.getenv("PORT", "3000"))
    app.run(host="0.0.0.0", port=port)
