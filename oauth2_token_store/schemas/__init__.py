from oauth2_token_store.schemas.token import IssuedTokenResponse, TokenRecord

__all__ = ["IssuedTokenResponse", "TokenRecord"]
