"""pkgsrc - 包源码定位与增量构建工具"""

__version__ = "0.3.0"
