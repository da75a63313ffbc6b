"""
Minebrew 统一异常体系

提供分层的异常结构，支持错误代码、上下文信息和字典序列化。
"""

from typing import Any, Dict, Optional
import aiohttp


class MinebrewError(Exception):
    """Minebrew 基础异常类"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self._get_default_code()
        self.context = context or {}

    def _get_default_code(self) -> str:
        """获取默认错误代码"""
        return "E000"

    def to_dict(self) -> Dict[str, Any]:
        """将异常转换为字典格式"""
        return {
            "error": True,
            "code": self.code,
            "message": self.message,
            "context": self.context,
            "type": self.__class__.__name__,
        }

    def __str__(self) -> str:
        if self.code:
            return f"[{self.code}] {self.message}"
        return self.message


class ConfigError(MinebrewError):
    """配置相关错误"""

    def _get_default_code(self) -> str:
        return "E100"


class ConfigParseError(ConfigError):
    """配置解析错误"""

    def _get_default_code(self) -> str:
        return "E101"


class ConfigValidationError(ConfigError):
    """配置验证错误"""

    def _get_default_code(self) -> str:
        return "E102"


class APIError(MinebrewError):
    """API 相关错误（包括网络传输错误）"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        response: Optional[aiohttp.ClientResponse] = None,
    ):
        super().__init__(message, code, context)
        self.response = response
        if response is not None:
            self.context["status_code"] = response.status
            self.context["url"] = str(response.url)

    def _get_default_code(self) -> str:
        return "E200"


class APINotFoundError(APIError):
    """API 资源不存在"""

    def _get_default_code(self) -> str:
        return "E404"


class APIRateLimitError(APIError):
    """API 速率限制"""

    def _get_default_code(self) -> str:
        return "E429"


class APIServerError(APIError):
    """API 服务器错误"""

    def _get_default_code(self) -> str:
        return "E500"


class DownloadError(MinebrewError):
    """下载相关错误"""

    def _get_default_code(self) -> str:
        return "E300"


class DownloadNetworkError(DownloadError):
    """下载网络错误"""

    def _get_default_code(self) -> str:
        return "E301"


class DownloadChecksumError(DownloadError):
    """下载校验错误"""

    def _get_default_code(self) -> str:
        return "E302"


class DatabaseError(MinebrewError):
    """本地数据库相关错误"""

    def _get_default_code(self) -> str:
        return "E600"


class ManifestCorruptError(DatabaseError):
    """
    清单文件损坏

    程序自身不应写出无法解析的清单，出现此错误说明内部不变量被破坏。
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            f"{message}\n这是 minebrew 的内部错误，请提交 bug 报告并附上清单文件",
            code,
            context,
        )

    def _get_default_code(self) -> str:
        return "E601"


class DatabaseIOError(DatabaseError):
    """清单文件读写错误"""

    def _get_default_code(self) -> str:
        return "E602"


class FileSystemError(MinebrewError):
    """文件系统操作错误"""

    def _get_default_code(self) -> str:
        return "E800"


class ResolutionError(MinebrewError):
    """模组解析错误"""

    def _get_default_code(self) -> str:
        return "E700"


class NotFoundError(ResolutionError):
    """查询在过滤后没有任何匹配结果"""

    def __init__(self, query: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(f"找不到与 '{query}' 匹配的模组", context=context)
        self.query = query
        self.context["query"] = query

    def _get_default_code(self) -> str:
        return "E701"


class VersionNotAcceptableError(ResolutionError):
    """项目没有满足条件的版本"""

    def __init__(
        self,
        project_id: str,
        target_version: str,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            f"项目 {project_id} 没有适用于 Minecraft {target_version} 的正式版或测试版",
            context=context,
        )
        self.project_id = project_id
        self.target_version = target_version
        self.context["project_id"] = project_id
        self.context["target_version"] = target_version

    def _get_default_code(self) -> str:
        return "E702"


__all__ = [
    # 基础异常
    "MinebrewError",
    # 配置异常
    "ConfigError",
    "ConfigParseError",
    "ConfigValidationError",
    # API 异常
    "APIError",
    "APINotFoundError",
    "APIRateLimitError",
    "APIServerError",
    # 下载异常
    "DownloadError",
    "DownloadNetworkError",
    "DownloadChecksumError",
    # 数据库异常
    "DatabaseError",
    "ManifestCorruptError",
    "DatabaseIOError",
    # 文件系统异常
    "FileSystemError",
    # 解析异常
    "ResolutionError",
    "NotFoundError",
    "VersionNotAcceptableError",
]
