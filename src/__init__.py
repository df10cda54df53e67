"""notemaster - bulk generation of long-form illustrated articles.

Topics go in, persisted articles come out:

  outline (grounded search) -> sections (+ inline images) -> thumbnail -> store

See ``notemaster.pipeline.batch.run_batch`` for the orchestrator and
``notemaster.cli`` for the console.
"""

__version__ = "0.3.0"
