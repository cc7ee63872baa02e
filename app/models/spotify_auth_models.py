from pydantic import BaseModel

# /token 回傳給前端 Web Playback SDK 的 access token
class AccessTokenResponse(BaseModel):
    access_token: str


# 所有錯誤回應共用的格式
class ErrorResponse(BaseModel):
    error: str
