"""Reference collection: dedupe resolved call-site references for a target."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from llmexplain.errors import DuplicateReferenceWarning
from llmexplain.models import PreparedMethod, ResolvedReference, TargetFunction

logger = logging.getLogger(__name__)


class ReferenceCollector:
    """Builds a PreparedMethod from a target and its resolved references.

    References are inserted by identifier in the order they are given. When an
    identifier repeats, the first occurrence is kept and a warning is logged;
    the duplicate's source provider is never invoked.
    """

    def collect(
        self,
        target: TargetFunction,
        raw_references: Iterable[ResolvedReference],
    ) -> PreparedMethod:
        references: dict[str, str] = {}
        duplicates: list[str] = []

        for ref in raw_references:
            if ref.identifier in references:
                logger.warning(str(DuplicateReferenceWarning(ref.identifier, target.name)))
                duplicates.append(ref.identifier)
                continue
            references[ref.identifier] = ref.read_source()
            logger.debug(f"({ref.identifier}) collected for {target.name}")

        logger.debug(
            f"Collected {len(references)} references for {target.name} "
            f"({len(duplicates)} duplicates dropped)"
        )

        return PreparedMethod(
            name=target.name,
            body=target.source_text,
            references=references,
            duplicates=tuple(duplicates),
        )
