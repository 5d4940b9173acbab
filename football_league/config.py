from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from football_league.exceptions import ConfigurationError

# Charger les variables d'environnement du fichier .env
load_dotenv()

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Informations de base de l'application
    APP_NAME: str = "Football League Console"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Base de données
    # DATABASE_URL court-circuite la composition à partir des champs DB_*
    DATABASE_URL: Optional[str] = None
    DB_DRIVER: str = "postgresql+asyncpg"
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "football_league"
    # Les identifiants viennent de l'environnement ou du fichier .env, jamais du code
    DB_USER: Optional[str] = None
    DB_PASSWORD: Optional[SecretStr] = None
    DB_POOL_SIZE: int = Field(default=5, ge=1)
    DB_MAX_OVERFLOW: int = Field(default=10, ge=0)
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800  # 30 minutes
    DB_ECHO: bool = False

    # Suppression en cascade des équipes d'une ligue (contrainte de clé étrangère)
    LEAGUE_DELETE_CASCADE: bool = False

    # Logs
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "text"
    LOG_FILE: Optional[str] = None

    @property
    def database_url(self) -> str:
        """
        URL de connexion à la base de données.

        Returns:
            DATABASE_URL si défini, sinon l'URL composée à partir des champs DB_*

        Raises:
            ConfigurationError: Si les identifiants sont absents
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL

        if not self.DB_USER or self.DB_PASSWORD is None:
            raise ConfigurationError(
                "DB_USER et DB_PASSWORD doivent être fournis par l'environnement "
                "ou le fichier .env (ou définir DATABASE_URL)"
            )

        password = self.DB_PASSWORD.get_secret_value()
        return f"{self.DB_DRIVER}://{self.DB_USER}:{password}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

# Créer une instance des paramètres
settings = Settings()
