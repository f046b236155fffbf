import uvicorn

from aircargo.config import PORT
from aircargo.main import app  # noqa: F401

# Per arrencar el backend: python main.py (o bé uvicorn aircargo.main:app --reload)
if __name__ == "__main__":
    uvicorn.run("aircargo.main:app", host="0.0.0.0", port=PORT)
