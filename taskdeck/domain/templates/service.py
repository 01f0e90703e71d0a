from __future__ import annotations

import logging
from dataclasses import replace
from typing import List

from taskdeck.domain.common.errors import DomainError, RemoteError
from taskdeck.domain.common.models import MutationResult
from taskdeck.domain.common.ports import Clock, IdGenerator
from taskdeck.domain.tasks.models import Task
from taskdeck.domain.tasks.service import TaskService
from taskdeck.domain.templates.models import TaskTemplate, TemplateDraft
from taskdeck.domain.templates.ports import TemplateRepository
from taskdeck.domain.templates.rules import (
    clean_steps,
    draft_from_template,
    search_templates,
    validate_estimate,
    validate_name,
)

logger = logging.getLogger(__name__)


class TemplateService:
    def __init__(self, repo: TemplateRepository, clock: Clock, ids: IdGenerator) -> None:
        self._repo = repo
        self._clock = clock
        self._ids = ids

    async def list_templates(self, owner_id: str, query: str = "") -> List[TaskTemplate]:
        try:
            templates = await self._repo.list_for(owner_id)
        except RemoteError as e:
            logger.warning("Listing templates failed owner=%s: %s", owner_id, e, exc_info=True)
            return []
        return search_templates(templates, query)

    async def create(self, owner_id: str, draft: TemplateDraft) -> MutationResult[TaskTemplate]:
        try:
            template = TaskTemplate(
                id=self._ids.new_id(),
                name=validate_name(draft.name),
                description=(draft.description or "").strip(),
                priority=draft.priority,
                category=draft.category,
                created_at=self._clock.now(),
                created_by=owner_id,
                estimated_minutes=validate_estimate(draft.estimated_minutes),
                steps=clean_steps(draft.steps),
            )
            await self._repo.add(template)
        except RemoteError as e:
            logger.warning("Saving template failed owner=%s: %s", owner_id, e, exc_info=True)
            return MutationResult.fail("Failed to save template. Please try again.")
        except DomainError as e:
            return MutationResult.fail(str(e))
        return MutationResult.ok(template)

    async def update(self, owner_id: str, template_id: str, draft: TemplateDraft) -> MutationResult[TaskTemplate]:
        try:
            current = await self._repo.get(owner_id, template_id)
            if current is None:
                return MutationResult.fail("Template not found.")
            updated = replace(
                current,
                name=validate_name(draft.name),
                description=(draft.description or "").strip(),
                priority=draft.priority,
                category=draft.category,
                estimated_minutes=validate_estimate(draft.estimated_minutes),
                steps=clean_steps(draft.steps),
            )
            await self._repo.update(updated)
        except RemoteError as e:
            logger.warning("Updating template failed id=%s: %s", template_id, e, exc_info=True)
            return MutationResult.fail("Failed to update template. Please try again.")
        except DomainError as e:
            return MutationResult.fail(str(e))
        return MutationResult.ok(updated)

    async def delete(self, owner_id: str, template_id: str) -> MutationResult[TaskTemplate]:
        try:
            removed = await self._repo.delete(owner_id, template_id)
        except RemoteError as e:
            logger.warning("Deleting template failed id=%s: %s", template_id, e, exc_info=True)
            return MutationResult.fail("Failed to delete template. Please try again.")
        if not removed:
            return MutationResult.fail("Template not found.")
        return MutationResult.ok()

    async def create_from_template(self, tasks: TaskService, template_id: str) -> MutationResult[Task]:
        try:
            template = await self._repo.get(tasks.owner_id, template_id)
        except RemoteError as e:
            logger.warning("Loading template failed id=%s: %s", template_id, e, exc_info=True)
            return MutationResult.fail("Failed to load template. Please try again.")
        if template is None:
            return MutationResult.fail("Template not found.")
        return await tasks.create(draft_from_template(template))
