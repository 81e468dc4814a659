"""
studiolink - Workflow adapter for the Oxylabs AI Studio extraction API.

Submits scrape, crawl, browser-agent and search runs, polls them to
completion and hands back normalized results, one record per input item.
"""

__version__ = "0.1.0"
__app_name__ = "studiolink"
