"""
业务异常体系（BizError）

约定与作用：
- 所有“预期内的业务错误”都继承 BizError，避免直接抛框架异常
- 统一错误码/HTTP 状态/提示语，便于前后端对齐
- 系统级错误（代码 bug、数据库故障等）由全局异常处理器按 500 处理

错误码规范：
- 0                : 成功（只出现在正常响应里）
- 40000~40099      : 通用请求 / 参数错误（Validation、BadRequest）
- 40100~40199      : 认证错误（未登录、Token 无效、登录失败等）
- 40300~40399      : 权限错误（非管理员、非内容作者）
- 40400~40499      : 资源不存在（用户、活动、帖子等）
- 40900~40999      : 资源冲突（重复报名、重复点赞、用户名占用等）
- 46000~46099      : 活动/比赛成绩相关错误
- 48000~48099      : 论坛相关错误

使用方式：
- 业务层抛 BizError 或子类；全局异常处理器读取 exc.code/message/http_status/extra 构造统一响应
"""


class BizError(Exception):
    """
    所有业务异常的基类

    设计要点：
    - 不耦合 DRF / Response，只是纯数据和语义；
    - 子类只需覆盖 default_code / default_message / http_status；
    - 也可以在 __init__ 时传入自定义 message / code / extra 做覆盖
    """

    #: 子类可覆盖的默认错误码
    default_code: int = 40000

    #: 子类可覆盖的默认提示信息
    default_message: str = "业务错误"

    #: 子类可覆盖的建议 HTTP 状态码（交给异常处理器用）
    http_status: int = 400

    def __init__(self, message: str | None = None, code: int | None = None, *, extra: dict | None = None):
        self.code = code if code is not None else self.default_code
        self.message = message if message is not None else self.default_message
        self.extra = extra or {}
        super().__init__(self.message)

    def __str__(self) -> str:  # 方便日志输出
        return f"[{self.code}] {self.message}"


# ======================
# 通用类错误
# ======================

class BadRequestError(BizError):
    """
    通用的 400 错误：
    - 无法解析的请求
    - 请求体不是 JSON 对象
    """
    default_code = 40001
    default_message = "错误的请求"
    http_status = 400


class ValidationError(BizError):
    """
    参数校验 / 请求数据不合法：
    - 缺少必要字段
    - 字段格式错误、路径中的 ID 非法
    """
    default_code = 40002
    default_message = "请求参数不合法"
    http_status = 400


class NotFoundError(BizError):
    """
    通用资源不存在：
    - 用户 / 活动 / 帖子 / 回复 / 资源不存在
    """
    default_code = 40400
    default_message = "资源不存在"
    http_status = 404


class ConflictError(BizError):
    """
    资源冲突：
    - 用户名或邮箱已被占用
    - 重复报名、重复点赞
    """
    default_code = 40900
    default_message = "资源冲突"
    http_status = 409


# ======================
# 认证 / 授权相关
# ======================

class AuthError(BizError):
    """
    认证相关错误（未登录、登录失败、Token 等）：
    - 统一归类为 401xx
    """
    default_code = 40100
    default_message = "认证失败"
    http_status = 401


class NotAuthenticatedError(AuthError):
    """未登录访问需要登录的接口"""
    default_code = 40101
    default_message = "请先登录后再执行此操作"


class InvalidCredentialsError(AuthError):
    """用户名 / 密码错误"""
    default_code = 40102
    default_message = "用户名或密码错误"


class TokenError(AuthError):
    """Token 无效 / 过期"""
    default_code = 40103
    default_message = "登录状态已失效，请重新登录"


class AccountInactiveError(AuthError):
    """账户处于停用状态，禁止登录"""
    default_code = 40104
    default_message = "账户已停用，请联系管理员"


class PermissionDeniedError(BizError):
    """
    权限不足：
    - 普通成员访问管理员接口
    - 不是内容作者（编辑/删除他人帖子、回复）
    """
    default_code = 40300
    default_message = "无权限进行该操作"
    http_status = 403


# ======================
# 活动 / 成绩领域错误
# ======================

class EventError(BizError):
    """活动相关通用错误基类"""
    default_code = 46000
    default_message = "活动相关错误"
    http_status = 400


class NotContestEventError(EventError):
    """只有比赛类活动才能登记成绩"""
    default_code = 46001
    default_message = "仅比赛类活动可以登记成绩"


class AlreadyRegisteredError(ConflictError):
    """重复报名同一活动"""
    default_code = 46002
    default_message = "已报名该活动"


# ======================
# 论坛领域错误
# ======================

class ReplyNotInPostError(NotFoundError):
    """回复不属于指定帖子"""
    default_code = 48001
    default_message = "回复不存在或不属于该帖子"


class AlreadyUpvotedError(ConflictError):
    """同一用户重复点赞同一回复"""
    default_code = 48002
    default_message = "你已经赞过这条回复"
