from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Remote backend API (e.g. https://host/api)
    API_BASE_URL: str
    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Session
    SESSION_SECRET_KEY: str
    TOKEN_SESSION_KEY: str = "token"

    # Cart
    CART_STORAGE_KEY: str = "carrito"
    SUBMIT_POLICY: str = "lock"

    # Shop
    SHOP_NAME: str = "Proyecto2"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
