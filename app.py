# app.py – dev entry point for the league stats API

from dotenv import load_dotenv

# .env has to be loaded before webapp.config reads the environment
load_dotenv()

from webapp import create_app  # noqa: E402
from webapp.config import FLASK_DEBUG, PORT  # noqa: E402

# `flask --app app run` and gunicorn (`app:app`) both pick this up
app = create_app()

if __name__ == "__main__":
    app.run(debug=FLASK_DEBUG, port=PORT)
