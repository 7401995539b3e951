"""
REST 客户端常量配置模块

定义 HTTP 方法、内容类型、认证方式以及客户端默认配置等常量
"""

# HTTP 方法常量
HTTP_METHOD_GET = "GET"
HTTP_METHOD_POST = "POST"
HTTP_METHOD_PUT = "PUT"
HTTP_METHOD_DELETE = "DELETE"
HTTP_METHOD_PATCH = "PATCH"
HTTP_METHOD_HEAD = "HEAD"
HTTP_METHOD_OPTIONS = "OPTIONS"
HTTP_METHOD_TRACE = "TRACE"

HTTP_METHODS = (
    HTTP_METHOD_GET,
    HTTP_METHOD_POST,
    HTTP_METHOD_PUT,
    HTTP_METHOD_DELETE,
    HTTP_METHOD_PATCH,
    HTTP_METHOD_HEAD,
    HTTP_METHOD_OPTIONS,
    HTTP_METHOD_TRACE,
)

# 读类型方法：参数放在查询字符串中，不进行包装、不发送请求体
READ_METHODS = {HTTP_METHOD_GET, HTTP_METHOD_HEAD, HTTP_METHOD_DELETE}

# 内容类型常量
CONTENT_TYPE_PLAIN = "text/plain"
CONTENT_TYPE_JSON = "application/json"
CONTENT_TYPE_XML = "text/xml"
CONTENT_TYPE_URLENCODED = "application/x-www-form-urlencoded"

# 扩展名 -> 内容类型（仅用于推断响应内容类型）
EXTENSION_CONTENT_TYPES = {
    "json": CONTENT_TYPE_JSON,
    "js": CONTENT_TYPE_JSON,
    "xml": CONTENT_TYPE_XML,
}

# 触发参数映射的发送内容类型关键字
MAPPABLE_CONTENT_TYPE_PATTERN = r"xml|json|urlencoded"

# 需要按点号路径校验必填字段的内容类型关键字
NESTED_CONTENT_TYPE_PATTERN = r"xml|json"

# 认证方式
AUTH_TYPE_NONE = "none"
AUTH_TYPE_BASIC = "basic"
AUTH_TYPE_HASH_KEY = "hash_key"
AUTH_TYPE_GET_PARAMS = "get_params"
AUTH_TYPE_HEADER = "header"
AUTH_TYPE_OAUTH_HEADER = "oauth_header"
AUTH_TYPE_OAUTH_PARAMS = "oauth_params"
AUTH_TYPE_OAUTH_BODY = "oauth_body"

# OAuth 1.0a 配置
DEFAULT_SIGNATURE_METHOD = "HMAC-SHA1"
OAUTH_NONCE_LENGTH = 16

# 默认配置
DEFAULT_TIMEOUT = 30  # 默认超时时间（秒）
DEFAULT_RETRIES = 3  # 默认重试次数（仅在启用传输层重试时生效）
DEFAULT_METHOD = HTTP_METHOD_GET
DEFAULT_CONTENT_TYPE = CONTENT_TYPE_PLAIN
DEFAULT_API_KEY_FIELD = "key"
DEFAULT_USER_AGENT = "restflex"

# 重试策略配置
RETRY_STATUS_FORCELIST = [429, 500, 502, 503, 504]  # 需要重试的 HTTP 状态码
RETRY_BACKOFF_FACTOR = 0.5  # 重试退避因子
RETRY_ALLOWED_METHODS = [
    HTTP_METHOD_HEAD,
    HTTP_METHOD_GET,
    HTTP_METHOD_PUT,
    HTTP_METHOD_DELETE,
    HTTP_METHOD_OPTIONS,
    HTTP_METHOD_TRACE,
]

# 连接池配置
POOL_CONNECTIONS = 100  # 连接池大小
POOL_MAXSIZE = 100  # 连接池最大连接数

DEFAULT_RETRY_CONFIG = {
    "total": DEFAULT_RETRIES,  # 重试总次数
    "backoff_factor": RETRY_BACKOFF_FACTOR,  # 重试退避因子
    "status_forcelist": RETRY_STATUS_FORCELIST,  # 需要重试的状态码列表
    "allowed_methods": RETRY_ALLOWED_METHODS,  # 允许重试的HTTP方法
    "raise_on_status": False,  # 重试耗尽后返回最后一次响应，由状态码判断失败
}

DEFAULT_POOL_CONFIG = {
    "pool_connections": POOL_CONNECTIONS,  # 连接池大小
    "pool_maxsize": POOL_MAXSIZE,  # 连接池最大连接数
}

# 响应信封中非 HTTP 错误使用的状态码
RESPONSE_CODE_NON_HTTP_ERROR = -1  # 非HTTP错误代码（如网络超时、连接失败等）
RESPONSE_CODE_FORMATTING_ERROR = -3  # 响应格式化失败错误代码
