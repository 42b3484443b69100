from src.app import DigestBot
from src.core import get_settings


def main() -> None:
    settings = get_settings()
    bot = DigestBot(settings)
    bot.run()


if __name__ == "__main__":
    main()
