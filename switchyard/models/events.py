"""
Pydantic models for the inbound host events.

AWS API Gateway v1 reference:
https://docs.aws.amazon.com/apigateway/latest/developerguide/set-up-lambda-proxy-integrations.html#api-gateway-simple-proxy-for-lambda-input-format

Each runtime validates its raw event against one of these models before a
Request is built, so stages never inspect the raw payload.
"""

from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ApiGatewayIdentity(BaseModel):
    """API Gateway Identity object."""

    sourceIp: Optional[str] = None
    userAgent: Optional[str] = None


class ApiGatewayRequestContext(BaseModel):
    """API Gateway Request Context object."""

    model_config = ConfigDict(extra="allow")

    requestId: Optional[str] = None
    identity: ApiGatewayIdentity = Field(default_factory=ApiGatewayIdentity)
    stage: Optional[str] = None


class APIGatewayProxyEvent(BaseModel):
    """
    AWS API Gateway Proxy Integration (v1) Event Structure.
    """

    model_config = ConfigDict(extra="allow")

    resource: Optional[str] = None
    path: str
    httpMethod: str
    headers: Optional[Dict[str, str]] = None
    queryStringParameters: Optional[Dict[str, str]] = None
    pathParameters: Optional[Dict[str, str]] = None
    requestContext: ApiGatewayRequestContext = Field(default_factory=ApiGatewayRequestContext)
    body: Optional[str] = None
    isBase64Encoded: bool = False


class AwsRecordEvent(BaseModel):
    """
    Single queue/stream record (SQS or Amazon MQ compatible).

    The queue name (last ARN segment) selects the route. Amazon MQ records
    carry a base64 `data` payload and `basicProperties` instead of `body`.
    """

    model_config = ConfigDict(extra="allow")

    eventSource: str
    eventSourceARN: str = Field(validation_alias=AliasChoices("eventSourceARN", "eventSourceArn"))
    messageId: Optional[str] = None
    receiptHandle: Optional[str] = None
    body: Any = None
    data: Any = None
    basicProperties: Dict[str, Any] = Field(default_factory=dict)
    redelivered: Optional[bool] = None


class AwsBatchEvent(BaseModel):
    """Wrapper carrying several records in one invocation."""

    Records: List[Dict[str, Any]]


class RabbitBatchEvent(BaseModel):
    """Amazon MQ (RabbitMQ) batch, messages grouped by "<queue>::<vhost>"."""

    model_config = ConfigDict(extra="allow")

    eventSource: str
    eventSourceARN: str = Field(validation_alias=AliasChoices("eventSourceARN", "eventSourceArn"))
    rmqMessagesByQueue: Dict[str, List[Dict[str, Any]]]


class DirectInvokeEvent(BaseModel):
    """Direct or scheduled invoke naming the target route explicitly."""

    model_config = ConfigDict(extra="allow")

    method: str
    path: str
    body: Any = None


class AzureHttpRequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    method: str
    url: str
    originalUrl: Optional[str] = None
    headers: Dict[str, str] = Field(default_factory=dict)
    query: Dict[str, str] = Field(default_factory=dict)
    params: Dict[str, str] = Field(default_factory=dict)
    rawBody: Optional[str] = None


class AzureHttpEvent(BaseModel):
    """Azure Functions HTTP trigger context."""

    model_config = ConfigDict(extra="allow")

    invocationId: Optional[str] = None
    req: AzureHttpRequest


class HttpFrameworkEvent(BaseModel):
    """
    Request handed over by a web framework adapter.

    `body` is already decoded by the framework.
    """

    model_config = ConfigDict(extra="allow")

    method: str
    url: str
    headers: Dict[str, str] = Field(default_factory=dict)
    query: Dict[str, Any] = Field(default_factory=dict)
    body: Any = None
    clientIp: Optional[str] = None


class SocketMessageEvent(BaseModel):
    """One message received on a persistent connection."""

    model_config = ConfigDict(extra="allow")

    route: str
    data: Any = None
    headers: Dict[str, str] = Field(default_factory=dict)
    address: Optional[str] = None
