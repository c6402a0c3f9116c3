"""
Weekly plan generation pipeline: Claude first, deterministic fallback always.

START -> GENERATING -> EXTRACTING -> VALIDATING -> {REPAIRING -> VALIDATING}*
      -> ENFORCING -> DIVERSIFYING -> DONE

Any failure in GENERATING, EXTRACTING or an unrepairable VALIDATING takes
the FALLBACK edge, which still passes through ENFORCING and DIVERSIFYING.
Unexpected errors on the generated path take the same edge; only
KnowledgeBaseError propagates.
"""

import json
import os
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FuturesTimeout
from datetime import datetime, timezone

from fitplan.constraint_enforcer import candidate_exercises, enforce_constraints
from fitplan.document_extractor import extract_plan_document, normalize_plan_document
from fitplan.fallback_generator import build_fallback_days
from fitplan.generation_adapter import AdapterFailure, build_generation_instruction
from fitplan.knowledge_base import KnowledgeBaseError, get_knowledge_base
from fitplan.plan_repairer import repair_plan_document
from fitplan.plan_validator import validate_plan_document
from fitplan.profile_normalizer import Profile, derive_targets, estimate_weeks_to_goal
from fitplan.split_selector import build_day_slots
from fitplan.weekly_diversifier import DEFAULT_CAP, diversify_week


START = "START"
GENERATING = "GENERATING"
EXTRACTING = "EXTRACTING"
VALIDATING = "VALIDATING"
REPAIRING = "REPAIRING"
FALLBACK = "FALLBACK"
ENFORCING = "ENFORCING"
DIVERSIFYING = "DIVERSIFYING"
DONE = "DONE"


class FallbackGenerationError(Exception):
    """The deterministic fallback produced a plan that fails validation."""


class PlanGenerator:
    """Produces a complete weekly plan for a profile, with or without Claude."""

    def __init__(self, config=None, adapter=None, knowledge_base=None):
        """
        Initialize the pipeline.

        Args:
            config: Full configuration dictionary (config.yaml contents)
            adapter: Object with generate(instruction_text) -> str, raising
                AdapterFailure; None skips straight to the fallback
            knowledge_base: KnowledgeBase to use (defaults to the singleton)
        """
        self.config = config or {}
        self.adapter = adapter

        kb_config = self.config.get('knowledge_base', {}) or {}
        self.knowledge_base = knowledge_base or get_knowledge_base(
            overrides_file=kb_config.get('overrides_file', 'knowledge_overrides.yaml')
        )

        generation = self.config.get('generation', {}) or {}
        self.enabled = generation.get('enabled', True)
        self.timeout_seconds = generation.get('timeout_seconds', 120)

        pipeline = self.config.get('pipeline', {}) or {}
        self.diversity_cap = pipeline.get('diversity_cap', DEFAULT_CAP)
        self.max_repair_passes = pipeline.get('max_repair_passes', 2)

    def _call_adapter(self, instruction):
        """Run the adapter under a wall-clock timeout; expiry abandons the call."""
        executor = ThreadPoolExecutor(max_workers=1)
        future = executor.submit(self.adapter.generate, instruction)
        try:
            return future.result(timeout=self.timeout_seconds)
        except FuturesTimeout as exc:
            future.cancel()
            raise AdapterFailure("timeout", f"No response within {self.timeout_seconds}s.") from exc
        except AdapterFailure:
            raise
        except Exception as exc:
            raise AdapterFailure("service_error", f"{type(exc).__name__}: {exc}") from exc
        finally:
            executor.shutdown(wait=False)

    def _run_ai_path(self, profile, targets, slots, trail):
        """
        Try to obtain a schema-valid document from the generation service.

        Returns:
            dict with "document" (None when the fallback edge must be taken),
            "source", "reason" and "repaired_fields"
        """
        if self.adapter is None or not self.enabled:
            return {"document": None, "reason": "generation disabled", "repaired_fields": 0}

        trail.append(GENERATING)
        print("🤖 Generating plan with Claude...")
        instruction = build_generation_instruction(profile, targets, slots)
        try:
            raw_text = self._call_adapter(instruction)
        except AdapterFailure as exc:
            print(f"  Generation failed ({exc}), falling back to deterministic plan.")
            return {"document": None, "reason": f"adapter_failure: {exc.kind}", "repaired_fields": 0}

        trail.append(EXTRACTING)
        extraction = extract_plan_document(raw_text)
        if extraction["document"] is None:
            print(f"  Could not extract a plan document ({'; '.join(extraction['notes'])}).")
            return {"document": None, "reason": "extraction_failure", "repaired_fields": 0}
        if extraction["method"] != "direct":
            print(f"  Recovered document via {extraction['method']} extraction.")
        document = normalize_plan_document(extraction["document"])

        trail.append(VALIDATING)
        report = validate_plan_document(document)
        repaired_fields = 0
        passes = 0
        while report["status"] == "needs_repair" and passes < self.max_repair_passes:
            print(f"  {report['summary']} Repairing...")
            trail.append(REPAIRING)
            repair = repair_plan_document(document, report, slots, targets, self.knowledge_base)
            passes += 1
            document = repair["document"]
            repaired_fields += len(repair["repaired"])
            trail.append(VALIDATING)
            report = repair["report"]

        if report["status"] != "ok":
            print(f"  {report['summary']} Plan is unrepairable.")
            return {"document": None, "reason": "validation_failure", "repaired_fields": repaired_fields}

        source = "ai_repaired" if repaired_fields else "ai"
        return {"document": document, "source": source, "reason": None, "repaired_fields": repaired_fields}

    def _finalize(self, document, profile, targets, trail):
        trail.append(ENFORCING)
        enforced = enforce_constraints(document, profile, targets, self.knowledge_base)

        trail.append(DIVERSIFYING)

        def candidates_for(focus):
            return candidate_exercises(focus, profile, self.knowledge_base)

        diversified = diversify_week(enforced["document"], candidates_for, cap=self.diversity_cap)
        report = validate_plan_document(diversified["document"])
        return {
            "document": diversified["document"],
            "report": report,
            "substitutions": enforced["substitutions"],
            "swaps": diversified["swaps"],
        }

    def generate_weekly_plan(self, profile, now=None):
        """
        Generate a complete weekly plan.

        Args:
            profile: Profile instance or raw profile mapping
            now: creation timestamp (defaults to the current UTC time)

        Returns:
            dict with "days" (day1..day7), "created_at", "is_locked",
            "estimated_weeks_to_goal" and "provenance"

        Raises:
            KnowledgeBaseError: a knowledge base table is empty
            FallbackGenerationError: the fallback plan failed validation
        """
        if not isinstance(profile, Profile):
            profile = Profile.from_dict(profile)

        trail = [START]
        targets = derive_targets(profile)
        slots = build_day_slots(profile)

        final = None
        try:
            attempt = self._run_ai_path(profile, targets, slots, trail)
            if attempt["document"] is not None:
                final = self._finalize(attempt["document"], profile, targets, trail)
                if final["report"]["status"] != "ok":
                    print(f"  {final['report']['summary']} Enforced plan invalid, falling back.")
                    attempt = {"document": None, "reason": "validation_failure", "repaired_fields": 0}
                    final = None
        except KnowledgeBaseError:
            raise
        except Exception as exc:
            print(f"❌ Error while processing generated plan: {type(exc).__name__}: {exc}")
            attempt = {"document": None, "reason": "internal_error", "repaired_fields": 0}
            final = None

        if final is None:
            trail.append(FALLBACK)
            print("  Building deterministic plan...")
            document = build_fallback_days(profile, targets, slots, self.knowledge_base)
            final = self._finalize(document, profile, targets, trail)
            if final["report"]["status"] != "ok":
                raise FallbackGenerationError(final["report"]["summary"])
            source = "fallback"
        else:
            source = attempt["source"]

        trail.append(DONE)
        created_at = (now or datetime.now(timezone.utc)).isoformat()
        print(f"✓ Weekly plan ready (source: {source})")

        return {
            "days": final["document"]["days"],
            "created_at": created_at,
            "is_locked": False,
            "estimated_weeks_to_goal": estimate_weeks_to_goal(profile, targets),
            "provenance": {
                "source": source,
                "states": trail,
                "fallback_reason": attempt.get("reason") if source == "fallback" else None,
                "repaired_fields": attempt.get("repaired_fields", 0),
                "substitutions": len(final["substitutions"]),
                "diversity_swaps": len(final["swaps"]),
            },
        }

    def save_plan(self, plan, output_folder="output"):
        """
        Save the generated plan as a timestamped JSON file.

        Returns:
            Path of the written file, or None when there is no plan
        """
        if not plan:
            print("No plan to save.")
            return None

        os.makedirs(output_folder, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = os.path.join(output_folder, f"weekly_plan_{timestamp}.json")
        with open(filepath, 'w') as f:
            json.dump(plan, f, indent=2)
        print(f"✓ Plan saved to: {filepath}")
        return filepath
