import uvicorn

from relief_proxy.dependencies import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("relief_proxy.app:app", host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
