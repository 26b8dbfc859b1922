import locale
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_LOCALE = "en_US"


class Settings(BaseSettings):
    IMDB_BASE_URL: str = "http://app.imdb.com/"
    IMDB_API_VERSION: str = "v1"
    IMDB_APP_ID: str = "iphone1"
    IMDB_SIG: str = "app1"
    IMDB_LOCALE: Optional[str] = None
    IMDB_TIMEOUT: float = 10.0
    IMDB_CHARSET: str = "utf-8"

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


def system_locale() -> str:
    """
    Return the process locale in ``language_COUNTRY`` form.

    :return: Locale name such as ``en_US``, or ``DEFAULT_LOCALE`` when the
        process has none.
    """
    try:
        name = locale.getlocale()[0]
    except ValueError:
        return DEFAULT_LOCALE
    if not name or name in ("C", "POSIX"):
        return DEFAULT_LOCALE
    return name


settings = Settings()
