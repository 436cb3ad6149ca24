from .github_tool import GitHubTool
from .quay_tool import QuayTool, parse_repository
from .rancher_tool import RancherTool

__all__ = ["GitHubTool", "QuayTool", "RancherTool", "parse_repository"]
