from trainingdesk_backend.middleware.request_context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware"]
