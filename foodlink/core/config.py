from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    jwt_secret: str = "dev"
    jwt_alg: str = "HS256"
    access_ttl_min: int = 60 * 24

    use_mongo: bool = False
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db: str = "foodlink"

    # public base for photo URLs; empty means relative "/photos/..."
    public_base_url: str = ""
    # appended to free-text locations for map searches
    map_region: str = "Pune, India"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


def get_settings() -> Settings:
    return Settings()


settings = get_settings()
