"""
FILE: schemas/summaries.py
---------------------------
Pydantic output schemas for the descriptive report sections:
file summary, coverage durations, table one, numeric distributions
and longitudinal sample rates.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class FileSummaryRow(BaseModel):
    file:        str
    n_episodes:  int
    upload_time: datetime | None = None    # latest parse time of the file
    sites:       str = ""                  # "Q70, C90"


class CoverageRow(BaseModel):
    label:         str                     # site "<id>-<name>" or file name
    min_admission: datetime | None = None
    max_admission: datetime | None = None
    min_discharge: datetime | None = None
    max_discharge: datetime | None = None


class CategoryCount(BaseModel):
    category:      str
    episode_count: int
    percentage:    str                     # "42.5 %"


class TableOneItem(BaseModel):
    short_name:   str
    display_name: str
    rows:         list[CategoryCount] = Field(default_factory=list)
    no_data:      bool = False             # zero episodes, nothing to count
    error:        str | None = None


class SiteDistribution(BaseModel):
    site:     str
    n:        int
    mean:     float | None = None
    std:      float | None = None
    median:   float | None = None
    min:      float | None = None
    max:      float | None = None
    skewness: float | None = None


class DistributionSummary(BaseModel):
    short_name:   str
    display_name: str
    unit:         str | None = None
    sites:        list[SiteDistribution] = Field(default_factory=list)
    figure_path:  str | None = None
    error:        str | None = None


class SampleRateRow(BaseModel):
    item:          str
    sample_period: float | None = None     # hours between observations; None → no data
