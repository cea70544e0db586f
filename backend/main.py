# backend/main.py
import os
from dotenv import load_dotenv
load_dotenv()

from backend.app import create_app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        app,
        host=os.getenv("CARDS_HOST", "127.0.0.1"),
        port=int(os.getenv("CARDS_PORT", "3000")),
    )
