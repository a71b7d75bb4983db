"""Core pipeline that turns one pull request event into one review."""

import time
from typing import Optional

import structlog

from ..config import Settings
from ..exceptions import AnalysisUnavailable, AuthUnavailable, PipelineOutcome, UpstreamUnavailable
from ..integrations.base import AnalysisClient, CredentialProvider, RepositoryClient, RepositoryClientFactory
from ..models.github import ReviewEvent
from ..models.review import PromptTemplate
from .context_assembler import ContextAssembler
from .file_filter import FileFilterPolicy, HasPatch, build_file_filter
from .prompt_builder import PromptBuilder

logger = structlog.get_logger(__name__)

DEFAULT_REVIEW_PREFIX = "Automated PR Review:\n"


class ReviewPipeline:
    """Runs credential, read, assemble, prompt, analyze and publish in order.

    Every failure is terminal for the event and is reported through the
    returned outcome; nothing is retried here.
    """

    def __init__(
        self,
        credentials: CredentialProvider,
        client_factory: RepositoryClientFactory,
        analysis_client: AnalysisClient,
        file_filter: Optional[FileFilterPolicy] = None,
        context_assembler: Optional[ContextAssembler] = None,
        prompt_builder: Optional[PromptBuilder] = None,
        review_prefix: str = DEFAULT_REVIEW_PREFIX,
    ):
        self.credentials = credentials
        self.client_factory = client_factory
        self.analysis_client = analysis_client
        self.file_filter = file_filter or HasPatch()
        self.context_assembler = context_assembler or ContextAssembler()
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.review_prefix = review_prefix

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        credentials: CredentialProvider,
        client_factory: RepositoryClientFactory,
        analysis_client: AnalysisClient,
    ) -> "ReviewPipeline":
        return cls(
            credentials=credentials,
            client_factory=client_factory,
            analysis_client=analysis_client,
            file_filter=build_file_filter(settings),
            context_assembler=ContextAssembler.from_settings(settings),
            prompt_builder=PromptBuilder(
                PromptTemplate.from_settings(settings),
                max_diff_chars=settings.max_diff_chars,
            ),
            review_prefix=settings.review_prefix,
        )

    async def run(self, event: ReviewEvent) -> PipelineOutcome:
        log = logger.bind(request_id=event.request_id, action=event.action.value)
        start_time = time.time()

        try:
            outcome = await self._run(event, log)
        except AuthUnavailable as e:
            log.error("Could not obtain GitHub credentials", error=str(e))
            return PipelineOutcome.AUTH_FAILED
        except UpstreamUnavailable as e:
            log.error(
                "GitHub request failed",
                operation=e.operation,
                status=e.status,
                permission_denied=e.permission_denied,
                error=str(e)
            )
            return PipelineOutcome.UPSTREAM_FAILED
        except AnalysisUnavailable as e:
            log.error("Analysis failed", error=str(e))
            return PipelineOutcome.ANALYSIS_FAILED

        log.info(
            "Review pipeline finished",
            outcome=outcome.value,
            duration_seconds=round(time.time() - start_time, 3)
        )
        return outcome

    async def _run(self, event: ReviewEvent, log) -> PipelineOutcome:
        token = await self.credentials.get_token(event.installation_id)
        client = self.client_factory(token)
        try:
            return await self._review(event, client, log)
        finally:
            await client.aclose()

    async def _review(self, event: ReviewEvent, client: RepositoryClient, log) -> PipelineOutcome:
        changed_files = await client.list_changed_files(event.owner, event.repo, event.pull_number)
        eligible = self.file_filter.apply(changed_files)
        log.info(
            "Retrieved changed files",
            changed=len(changed_files),
            eligible=len(eligible),
            file_filter=self.file_filter.name
        )
        if not eligible:
            log.warning("No file changes found")
            return PipelineOutcome.NO_CHANGED_FILES

        context = await self.context_assembler.assemble(client, event.owner, event.repo)
        prompt = self.prompt_builder.build(eligible, context)
        log.debug("Built review prompt", prompt_chars=len(prompt), context_files=list(context.files))

        analysis = await self.analysis_client.analyze(prompt)
        if not analysis.strip():
            log.warning("Analysis returned no text")
            return PipelineOutcome.EMPTY_ANALYSIS

        await client.publish(
            event.owner,
            event.repo,
            event.pull_number,
            f"{self.review_prefix}{analysis}",
        )
        return PipelineOutcome.PUBLISHED
