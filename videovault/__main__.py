import uvicorn
from videovault.core.config import settings

def run():
    uvicorn.run("videovault.main:app", host=settings.HOST, port=settings.PORT, log_level="info")

if __name__ == "__main__":
    run()
