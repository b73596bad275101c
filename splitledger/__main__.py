import uvicorn

from splitledger.core.config import settings


def main():
    uvicorn.run("splitledger.main:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
