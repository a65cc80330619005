from pydantic import BaseModel


class TokenData(BaseModel):
    # Subject issued by the identity provider
    user_id: str
