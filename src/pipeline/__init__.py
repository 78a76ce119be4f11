"""Pipeline modules — orchestration layer for the quire build.

  site — source collections -> store -> revisions -> rendered, published site

Pipeline modules import domain logic via public APIs:
  - ``from quire.content import ...`` (not ``quire.content.store``)
  - ``from quire.revisions import ...``
  - ``from quire.publish import ...``
"""

from quire.pipeline.site import BuildResult, PipelineResult, build_site, run_pipeline

__all__ = ["BuildResult", "PipelineResult", "build_site", "run_pipeline"]
