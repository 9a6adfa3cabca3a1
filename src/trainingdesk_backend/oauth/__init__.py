from trainingdesk_backend.oauth.google import GoogleOAuthClient, OAuthError

__all__ = ["GoogleOAuthClient", "OAuthError"]
