from oauth2_token_store.models.oauth2_token import OAuth2Token

__all__ = [
    "OAuth2Token",
]
