"""
Main Application Entry Point.

This module serves as the primary entry point. Depending on configuration it:
- Collects a user's activity over a window, optionally enriched with details
- Computes pull request response times for a repository against its maintainers
- Lists open pull requests of monitored repositories

Every result is written as JSON to the report output directory. The GitHub
token is read here, once, and handed to the clients explicitly.
"""

import asyncio
import os
from datetime import datetime, timezone
from typing import Dict, List

from github import Auth, Github
from pydantic import BaseModel, RootModel

from config import Settings, settings, logger
from analyzers.multi_repository import MultiRepositoryMonitor
from analyzers.response_time import ResponseTimeAnalyzer, summarize_response_times
from miners.activity_miner import ActivityMiner
from miners.enrichment import EnrichmentOrchestrator
from miners.graphql_client import GitHubGraphQLClient
from miners.models import DateWindow, OpenPullRequest
from miners.repository_miner import RepositoryMiner


def write_report(output_dir: str, name: str, model: BaseModel) -> str:
    """
    Write a result model as JSON.

    Args:
        output_dir (str): Directory for the report
        name (str): Report base name
        model (BaseModel): Result to serialize

    Returns:
        str: Path of the written file
    """
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d")
    path = os.path.join(output_dir, f"{name.replace('/', '_')}_{stamp}.json")
    with open(path, "w", encoding="utf-8") as f:
        f.write(model.model_dump_json(indent=2))
    logger.info({"message": "Report written", "path": path})
    return path


async def run_activity(config: Settings, client: GitHubGraphQLClient) -> None:
    start, end = config.activity_window()
    window = DateWindow(start=start, end=end)
    bundle = await ActivityMiner(client).mine_activity(config.github_login, window)

    if config.enrich:
        orchestrator = EnrichmentOrchestrator(client, config.max_concurrency)
        result = await orchestrator.enrich(bundle, window, config.github_login)
        for failure in result.failures:
            logger.warning(
                {
                    "message": "Item left without details",
                    "kind": failure.kind,
                    "item": failure.key,
                    "error": failure.error,
                }
            )
        write_report(config.report_output_dir, f"activity_{config.github_login}", result)
    else:
        write_report(config.report_output_dir, f"activity_{config.github_login}", bundle)


async def run_health(config: Settings, miner: RepositoryMiner) -> None:
    if not config.maintainer_team_slug:
        raise ValueError("MAINTAINER_TEAM_SLUG must be set for repository health")
    owner, name = config.health_repository.split("/")
    start, end = config.health_window()
    window = DateWindow(start=start, end=end)

    maintainers = await miner.fetch_maintainers(owner, config.maintainer_team_slug)
    pull_requests = await miner.fetch_pull_requests(owner, name, window)
    records = ResponseTimeAnalyzer().analyze(pull_requests, maintainers)
    summary = summarize_response_times(config.health_repository, window, records)
    write_report(config.report_output_dir, f"health_{config.health_repository}", summary)


async def run_monitor(config: Settings, miner: RepositoryMiner) -> None:
    monitor = MultiRepositoryMonitor(miner, config.monitor_repositories)
    results = await monitor.monitor_repositories()
    report = RootModel[Dict[str, List[OpenPullRequest]]](results)
    write_report(config.report_output_dir, "open_pull_requests", report)


async def main() -> None:
    """
    Execute the configured workflows.

    Raises:
        OSError: If unable to create output directory
        GitHubMinerError: If activity or health collection fails
    """
    logger.info("Starting ghpulse ...")
    os.makedirs(settings.report_output_dir, exist_ok=True)

    token = settings.github_token.get_secret_value()
    github = Github(auth=Auth.Token(token), base_url=settings.github_api_url)

    try:
        async with GitHubGraphQLClient(token, api_url=settings.github_api_url) as client:
            miner = RepositoryMiner(client, github)
            ran = False

            if settings.github_login:
                logger.info("collecting user activity...")
                await run_activity(settings, client)
                ran = True

            if settings.health_repository:
                logger.info("analyzing repository response times...")
                await run_health(settings, miner)
                ran = True

            if settings.monitor_repositories:
                logger.info("monitoring open pull requests...")
                await run_monitor(settings, miner)
                ran = True

            if not ran:
                logger.warning(
                    "Nothing to do: set GITHUB_LOGIN, HEALTH_REPOSITORY or MONITOR_REPOS"
                )
    finally:
        github.close()
    logger.info("application finished")


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
