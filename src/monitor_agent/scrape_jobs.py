"""Lookup, upsert and removal of scrape jobs in a Prometheus scrape config list.

All functions are pure: they return a new list and never modify the one passed in.
"""

import logging
from typing import List, Optional, Tuple

from monitor_agent.constants import BLACKBOX_EXPORTER_ADDRESS, PROBE_METRICS_PATH
from monitor_agent.models import RelabelConfig, ScrapeJob, ScrapeJobRequest, StaticConfig

logger = logging.getLogger(__name__)


def find_scrape_job_index(job_name: str, jobs: List[ScrapeJob]) -> Optional[int]:
    """Return the position of the job called `job_name`, or None if there is none."""
    for index, job in enumerate(jobs):
        if job.job_name == job_name:
            return index
    return None


def build_scrape_job(request: ScrapeJobRequest) -> ScrapeJob:
    """Generate the scrape job probing `request.target_urls` through the Blackbox Exporter.

    The job is regenerated from scratch on every upsert; nothing is merged
    from a previous version of the same job.
    """
    return ScrapeJob(
        job_name=request.unique_name,
        metrics_path=PROBE_METRICS_PATH,
        params={"module": [request.prober]},
        static_configs=[
            StaticConfig(
                targets=list(request.target_urls),
                labels={
                    "env": request.env,
                    "system_alert_id": request.system_alert_id,
                },
            )
        ],
        # The target becomes the `target` param of the probe and the `instance`
        # label, while the scrape itself goes to the exporter.
        relabel_configs=[
            RelabelConfig(source_labels=["__address__"], target_label="__param_target"),
            RelabelConfig(source_labels=["__param_target"], target_label="instance"),
            RelabelConfig(target_label="__address__", replacement=BLACKBOX_EXPORTER_ADDRESS),
        ],
    )


def upsert_scrape_job(request: ScrapeJobRequest, jobs: List[ScrapeJob]) -> List[ScrapeJob]:
    """Replace the job named like the request in place, or append it."""
    job = build_scrape_job(request)
    index = find_scrape_job_index(request.unique_name, jobs)
    logger.info("Scrape job %s found at index %s", request.unique_name, index)

    if index is None:
        return [*jobs, job]
    return [*jobs[:index], job, *jobs[index + 1:]]


def delete_scrape_job(job_name: str, jobs: List[ScrapeJob]) -> Tuple[List[ScrapeJob], bool]:
    """Remove the job called `job_name`.

    Returns:
        The new list and whether the job was found. When it was not, the list
        is returned unchanged.
    """
    index = find_scrape_job_index(job_name, jobs)
    logger.info("Scrape job %s found at index %s", job_name, index)

    if index is None:
        return jobs, False
    return [*jobs[:index], *jobs[index + 1:]], True
