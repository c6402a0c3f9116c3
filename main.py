#!/usr/bin/env python3
"""
Weekly Fitness Plan Generator
Main entry point for the application.
"""

import argparse
import json
import os
import sys

import yaml
from dotenv import load_dotenv

from fitplan.generation_adapter import ClaudeAdapter
from fitplan.knowledge_base import KnowledgeBaseError
from fitplan.plan_generator import FallbackGenerationError, PlanGenerator
from fitplan.profile_normalizer import Profile, derive_targets


def load_config():
    """Load configuration from config.yaml."""
    config_path = os.path.join(os.path.dirname(__file__), 'config.yaml')

    if not os.path.exists(config_path):
        print("Error: config.yaml not found!")
        sys.exit(1)

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f)

    return config or {}


def load_profile(path):
    """Load a raw profile mapping from a YAML or JSON file."""
    if not os.path.exists(path):
        print(f"Error: profile file '{path}' not found!")
        sys.exit(1)

    with open(path, 'r') as f:
        if path.endswith('.json'):
            return json.load(f)
        return yaml.safe_load(f) or {}


def print_banner():
    """Print welcome banner."""
    banner = """
╔══════════════════════════════════════════════════════════════╗
║                                                              ║
║        WEEKLY FITNESS PLAN GENERATOR                         ║
║        Powered by Claude AI                                  ║
║                                                              ║
╚══════════════════════════════════════════════════════════════╝
    """
    print(banner)


def print_summary(plan):
    """Print a one-line summary per day."""
    print("\n" + "=" * 60)
    print("WEEKLY PLAN")
    print("=" * 60)
    for day, day_plan in plan['days'].items():
        focus = ", ".join(day_plan['workout']['focus'])
        main_items = sum(len(block['items']) for block in day_plan['workout']['blocks'])
        meals = len(day_plan['nutrition']['meals'])
        print(
            f"{day}: {focus:<14} {main_items:>2} exercises | "
            f"{day_plan['nutrition']['total_kcal']} kcal, {day_plan['nutrition']['protein_g']} g protein, "
            f"{meals} meals"
        )
    weeks = plan.get('estimated_weeks_to_goal')
    if weeks:
        print(f"\nEstimated weeks to goal: {weeks}")
    print(f"Source: {plan['provenance']['source']}")


def build_adapter(config, offline):
    """Create the Claude adapter, or None when running offline."""
    if offline or not (config.get('generation', {}) or {}).get('enabled', True):
        return None

    api_key_env = config['claude']['api_key_env']
    api_key = os.getenv(api_key_env)

    if not api_key:
        print(f"\n⚠ {api_key_env} not found in environment variables.")
        print("  Continuing with the deterministic planner. To use Claude:")
        print("  1. Copy .env.example to .env")
        print("  2. Add your Anthropic API key to .env")
        return None

    return ClaudeAdapter(api_key=api_key, config=config)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Generate a seven-day training and nutrition plan.")
    parser.add_argument("--profile", default="profile.example.yaml", help="Profile YAML or JSON file")
    parser.add_argument("--offline", action="store_true", help="Skip Claude and use the deterministic planner")
    parser.add_argument("--output", default=None, help="Output folder (defaults to config value)")
    parser.add_argument("--print", dest="print_json", action="store_true", help="Print the plan JSON")
    return parser.parse_args(argv)


def main(argv=None):
    """Main application flow."""
    args = parse_args(argv)
    print_banner()

    # Load environment variables
    load_dotenv()

    # Load configuration
    print("Loading configuration...")
    config = load_config()

    profile = Profile.from_dict(load_profile(args.profile))
    targets = derive_targets(profile)
    print(
        f"✓ Profile loaded: {profile.goal}, {profile.experience_level}, "
        f"{profile.training_days} training days"
    )
    print(
        f"✓ Daily targets: {targets['energy_kcal']} kcal, "
        f"{targets['protein_g']} g protein, {targets['hydration_l']} L water"
    )

    generator = PlanGenerator(config=config, adapter=build_adapter(config, args.offline))

    try:
        plan = generator.generate_weekly_plan(profile)
    except (KnowledgeBaseError, FallbackGenerationError) as exc:
        print(f"\n❌ Error: could not build a plan: {exc}")
        sys.exit(1)

    print_summary(plan)

    output_folder = args.output or (config.get('output', {}) or {}).get('folder', 'output')
    generator.save_plan(plan, output_folder=output_folder)

    if args.print_json:
        print(json.dumps(plan, indent=2))


if __name__ == "__main__":
    main()
