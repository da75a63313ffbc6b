"""
Minebrew - Minecraft 模组包管理器
"""

__version__ = "0.2.0"
