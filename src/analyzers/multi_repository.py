"""
Multi-Repository Monitoring Module.

This module lists the open pull requests of several repositories, one
repository after another. It coordinates:

- Repository name validation
- Open pull request collection per repository
- Error handling and logging, so one failing repository does not stop the others
"""

from typing import Dict, List

from config import logger
from miners.errors import GitHubMinerError
from miners.models import OpenPullRequest
from miners.repository_miner import RepositoryMiner


class MultiRepositoryMonitor:
    """
    Coordinates open pull request monitoring over multiple repositories.

    Attributes:
        miner (RepositoryMiner): Instance for mining repository data.
        repositories (List[str]): owner/name identifiers to monitor.
    """

    def __init__(self, miner: RepositoryMiner, repositories: List[str]):
        """Initialize the multi-repository monitor.

        Args:
            miner (RepositoryMiner): Instance for mining repository data.
            repositories (List[str]): owner/name identifiers to monitor.

        Raises:
            ValueError: If a repository is not in owner/name form.
        """
        for repo_name in repositories:
            if len(repo_name.split("/")) != 2:
                raise ValueError(f"Repository must be in owner/name form: {repo_name}")
        self.miner = miner
        self.repositories = repositories

    async def monitor_repositories(self) -> Dict[str, List[OpenPullRequest]]:
        """
        Collect open pull requests for every configured repository.

        Returns:
            Dict[str, List[OpenPullRequest]]: Mapping of repository names to
                their open pull requests.

        Note:
            If collection fails for a repository, it logs the error and continues
            with remaining repositories; the failed repository is absent from
            the result.
        """
        logger.info(
            {
                "message": "Monitoring open pull requests",
                "repositories": len(self.repositories),
            }
        )
        results = {}
        for repo_name in self.repositories:
            owner, name = repo_name.split("/")
            try:
                prs = await self.miner.fetch_open_pull_requests(owner, name)
            except GitHubMinerError as e:
                logger.error(
                    {
                        "message": "Failed to fetch open pull requests",
                        "repository": repo_name,
                        "error": str(e),
                    }
                )
                continue

            logger.info(
                {
                    "message": "Open pull requests",
                    "repository": repo_name,
                    "count": len(prs),
                }
            )
            results[repo_name] = prs

        return results
