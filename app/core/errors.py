# app/core/errors.py
from typing import Any, Dict, Optional
from enum import Enum


class ErrorCode(str, Enum):
    BAD_REQUEST = "bad_request"              # 400
    VALIDATION_ERROR = "validation_error"    # 400
    MISSING_TENANT = "missing_tenant"        # 400
    INVALID_TENANT_ID = "invalid_tenant_id"  # 400
    PROVIDER_REJECTED = "provider_rejected"  # 400
    INVITATION_FAILED = "invitation_failed"  # 400
    UNAUTHORIZED = "unauthorized"            # 401
    FORBIDDEN = "forbidden"                  # 403
    NOT_FOUND = "not_found"                  # 404
    PROVIDER_ERROR = "provider_error"        # 500
    PARTIAL_LINK = "partial_link"            # 500
    INTERNAL_ERROR = "internal_error"        # 500


class AppError(Exception):
    """
    Base error converted to a JSON body at the request boundary.
    Frontend reads `error` for the message and keys on `code` for behavior.
    """
    status_code = 500
    code = ErrorCode.INTERNAL_ERROR
    default_message = "Erro interno do servidor."

    def __init__(self, message: Optional[str] = None, *, meta: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.meta = meta or {}
        super().__init__(self.message)

    def to_body(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.message, "code": self.code.value}
        if self.meta:
            body["meta"] = self.meta
        return body


class ValidationError(AppError):
    status_code = 400
    code = ErrorCode.VALIDATION_ERROR
    default_message = "Requisição inválida."


class MissingTenantError(ValidationError):
    code = ErrorCode.MISSING_TENANT
    default_message = "empresaId é obrigatório."


class InvalidTenantIdError(ValidationError):
    code = ErrorCode.INVALID_TENANT_ID
    default_message = "empresaId inválido."


class AuthenticationError(AppError):
    status_code = 401
    code = ErrorCode.UNAUTHORIZED
    default_message = "Autenticação obrigatória."


class AuthorizationError(AppError):
    status_code = 403
    code = ErrorCode.FORBIDDEN
    default_message = "Você não tem permissão para esta ação."


class NotFoundError(AppError):
    status_code = 404
    code = ErrorCode.NOT_FOUND
    default_message = "Não encontrado."


class ProviderRejection(AppError):
    """The provider answered and refused the request; its message is shown verbatim."""
    status_code = 400
    code = ErrorCode.PROVIDER_REJECTED
    default_message = "Requisição recusada pelo provedor."


class InvitationFailed(ProviderRejection):
    code = ErrorCode.INVITATION_FAILED
    default_message = "Falha ao criar usuário."


class ProviderError(AppError):
    """
    A provider call failed (transport, timeout, 5xx, database or storage error).
    The user only sees the generic message; `detail` goes to the logs.
    """
    status_code = 500
    code = ErrorCode.PROVIDER_ERROR
    default_message = "Erro ao comunicar com o provedor."

    def __init__(self, provider: str, detail: str = "", message: Optional[str] = None):
        self.provider = provider
        self.detail = detail
        super().__init__(message)


class PartialLinkError(AppError):
    """Invite succeeded at the identity provider but the membership row was not written."""
    status_code = 500
    code = ErrorCode.PARTIAL_LINK
    default_message = "Usuário criado, mas falha ao vincular à empresa."

    def __init__(self, account_id: str, company_id: str, detail: str = ""):
        self.account_id = account_id
        self.company_id = company_id
        self.detail = detail
        super().__init__(meta={"account_id": account_id, "empresa_id": company_id})


LinkingFailed = PartialLinkError
