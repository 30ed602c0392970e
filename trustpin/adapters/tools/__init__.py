"""
Binary tool adapters.
"""

from trustpin.adapters.tools.github import GITHUB_TOOLS, AssetLayout, GitHubReleaseTool
from trustpin.adapters.tools.hashicorp import HashiCorpTool
from trustpin.adapters.tools.kubernetes import HelmAdapter, KubectlAdapter
from trustpin.adapters.tools.maven import MavenAdapter

TOOL_ADAPTERS = (
    *GITHUB_TOOLS,
    KubectlAdapter(),
    HelmAdapter(),
    HashiCorpTool("terraform", "Infrastructure as code"),
    MavenAdapter(),
)

__all__ = [
    "AssetLayout",
    "GitHubReleaseTool",
    "HashiCorpTool",
    "HelmAdapter",
    "KubectlAdapter",
    "MavenAdapter",
    "TOOL_ADAPTERS",
]
