#!/usr/bin/env python3
"""
Treadmill Coach CLI.

Training plans for treadmill runners, from the terminal.

Usage:
    treadmill-coach init-db
    treadmill-coach profile --user alice --level beginner --days 1 3 5
    treadmill-coach generate --user alice --goal 10k --weeks 8
    treadmill-coach schedule --user alice
    treadmill-coach progress --user alice
    treadmill-coach analyze --session <session-id>
    treadmill-coach cap --level beginner --requested 6 --goal marathon
"""

import argparse
import asyncio
import logging
import sys
from datetime import date
from typing import Optional

from .config import get_settings
from .db.adapters import DatabaseAdapter, get_database_adapter
from .exceptions import TreadmillCoachError
from .models.plans import PlanGenerationRequest, PlanIntensity
from .models.profile import FitnessLevel, SpeedRange, UserProfile
from .scheduling.calendar import format_full_workout_date, format_workout_date
from .scheduling.safety import cap_workouts
from .services.analytics import AnalyticsService
from .services.plan_generator import GenerationStrategy
from .services.plan_service import PlanService


# ANSI color codes
class Colors:
    RED = "\033[91m"
    YELLOW = "\033[93m"
    GREEN = "\033[92m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    BOLD = "\033[1m"
    RESET = "\033[0m"


def format_pace(pace: float) -> str:
    """min/km as M:SS."""
    if pace <= 0:
        return "-"
    minutes = int(pace)
    seconds = int(round((pace - minutes) * 60))
    if seconds == 60:
        minutes, seconds = minutes + 1, 0
    return f"{minutes}:{seconds:02d}/km"


def progress_bar(percentage: int, width: int = 20) -> str:
    filled = int(width * percentage / 100)
    color = Colors.GREEN if percentage >= 75 else Colors.YELLOW if percentage >= 25 else Colors.RED
    return f"{color}{'#' * filled}{'.' * (width - filled)}{Colors.RESET} {percentage}%"


def header(title: str) -> None:
    print()
    print(f"{Colors.BOLD}{title}{Colors.RESET}")
    print("=" * 40)


def cmd_init_db(args, adapter: DatabaseAdapter):
    """Create the database schema."""
    adapter.initialize()
    health = adapter.health_check()
    print(f"{Colors.GREEN}Database ready{Colors.RESET} ({health.get('backend')}, {health.get('latency_ms', 0):.1f} ms)")


def cmd_profile(args, adapter: DatabaseAdapter):
    """Show or update the onboarding profile."""
    header("Treadmill Coach - Profile")
    profile = adapter.get_profile(args.user)

    updates = {
        "level": args.level,
        "goal": args.goal,
        "weekly_availability": args.sessions,
        "available_days": args.days,
        "max_speed": args.max_speed,
        "usual_workout_duration": args.duration,
    }
    if any(v is not None for v in updates.values()):
        profile = profile or UserProfile(user_id=args.user)
        for key, value in updates.items():
            if value is not None:
                setattr(profile, key, value)
        if args.speeds:
            profile.preferred_speed_range = SpeedRange(*args.speeds)
        profile = adapter.save_profile(args.user, profile)
        print(f"{Colors.GREEN}Profile saved{Colors.RESET}")

    if profile is None:
        print("No profile yet. Create one with:")
        print(f"  treadmill-coach profile --user {args.user} --level beginner --days 1 3 5")
        return

    speeds = profile.preferred_speed_range
    print(f"  Level:      {profile.level}")
    print(f"  Goal:       {profile.goal}")
    if profile.available_days is not None:
        print(f"  Days:       {', '.join(str(d) for d in profile.sorted_days)}")
    else:
        print(f"  Sessions:   {profile.weekly_availability}/week")
    print(f"  Speeds:     walk {speeds.walking} / run {speeds.running} / sprint {speeds.sprint} km/h")
    print(f"  Max speed:  {profile.max_speed} km/h")
    print(f"  Session:    {profile.usual_workout_duration} min")
    print()


def cmd_generate(args, adapter: DatabaseAdapter):
    """Generate a plan and make it active."""
    header("Treadmill Coach - New Plan")
    service = PlanService(adapter)
    request = PlanGenerationRequest(
        profile=None,
        goal=args.goal,
        weeks=args.weeks,
        start_date=date.fromisoformat(args.start) if args.start else date.today(),
        intensity=PlanIntensity(args.intensity),
    )
    strategy = GenerationStrategy(args.strategy) if args.strategy else None
    result = asyncio.run(service.generate_and_save(args.user, request, strategy))

    if result.explanation:
        print(f"{Colors.YELLOW}{result.explanation}{Colors.RESET}")
        print()
    if not result.success:
        print(f"{Colors.RED}{result.error}{Colors.RESET}")
        sys.exit(1)

    plan = result.plan
    print(f"  {Colors.BOLD}{plan.name}{Colors.RESET} ({plan.source.value})")
    print(f"  {plan.total_weeks} weeks, {plan.workouts_per_week} sessions/week, {plan.total_workouts} workouts")
    print(f"  {format_full_workout_date(plan.start_date)} -> {format_full_workout_date(plan.end_date)}")
    print(f"  Plan id: {result.plan_id}")
    print()


def cmd_schedule(args, adapter: DatabaseAdapter):
    """Show the week-by-week schedule of the active plan."""
    service = PlanService(adapter)
    info = service.get_active_plan(args.user)
    if info is None:
        print("No active plan. Run 'treadmill-coach generate' first.")
        return

    header(f"Schedule - {info.plan.name}")
    today = date.today()
    for week in info.schedule.values():
        marker = f" {Colors.CYAN}<- this week{Colors.RESET}" if week.week_number == info.current_week else ""
        print(f"{Colors.BOLD}Week {week.week_number}{Colors.RESET} "
              f"({format_workout_date(week.start_date)} - {format_workout_date(week.end_date)}){marker}")
        for workout in week.workouts:
            when = format_workout_date(workout.scheduled_date)
            flag = f" {Colors.GREEN}today{Colors.RESET}" if workout.scheduled_date == today else ""
            print(f"  {workout.day_name:<10} {when:<13} {workout.name} "
                  f"({workout.estimated_duration} min, difficulty {workout.difficulty}){flag}")
    print()


def cmd_progress(args, adapter: DatabaseAdapter):
    """Show completion of the active plan and recent training stats."""
    service = PlanService(adapter)
    info = service.get_active_plan(args.user)
    header("Treadmill Coach - Progress")

    if info is None:
        print("No active plan.")
    else:
        print(f"  Plan:         {info.plan.name}")
        print(f"  Current week: {info.current_week}/{info.plan.total_weeks}")
        print(f"  This week:    {progress_bar(info.weekly_progress)}")
        print(f"  Overall:      {progress_bar(info.total_progress)}")

    stats = AnalyticsService(adapter).user_progress_stats(args.user, days=args.days)
    print()
    print(f"Last {args.days} days:")
    print(f"  Sessions:     {stats.total_workouts}")
    print(f"  Distance:     {stats.total_distance_km:.1f} km")
    print(f"  Time:         {stats.total_time_min:.0f} min")
    print(f"  Avg speed:    {stats.average_speed:.1f} km/h")
    print(f"  Best pace:    {format_pace(stats.best_pace)}")
    print(f"  Consistency:  {stats.consistency}%")
    print()


def cmd_analyze(args, adapter: DatabaseAdapter):
    """Show the analytics of a finished session."""
    service = AnalyticsService(adapter)
    analytics = service.analyze(args.session)
    if analytics is None:
        print(f"{Colors.RED}Session {args.session} not found{Colors.RESET}")
        sys.exit(1)

    header("Session Analytics")
    print(f"  Duration:   {analytics.total_duration / 60:.1f} min")
    print(f"  Distance:   {analytics.total_distance / 1000:.2f} km")
    print(f"  Avg speed:  {analytics.average_speed:.1f} km/h ({format_pace(analytics.average_pace)})")
    print(f"  Speed:      {analytics.min_speed:.1f} - {analytics.max_speed:.1f} km/h, "
          f"{analytics.speed_changes} changes")

    if analytics.segment_splits:
        print()
        print(f"{Colors.BOLD}Segments{Colors.RESET}")
        for split in analytics.segment_splits:
            print(f"  {split.split_number:>2}. {split.segment_name or '-':<16} "
                  f"{split.distance:>6.0f} m  {format_pace(split.average_pace)}")

    if analytics.kilometer_splits:
        print()
        print(f"{Colors.BOLD}Kilometres{Colors.RESET}")
        for split in analytics.kilometer_splits:
            print(f"  km {split.split_number:>2}  {split.duration:>5.0f}s  {format_pace(split.average_pace)}")

    if args.user:
        comparisons = service.compare(args.session, args.user)
        if comparisons:
            print()
            print(f"{Colors.BOLD}Against previous session{Colors.RESET}")
            for c in comparisons:
                color = Colors.GREEN if c.improved else Colors.RED
                print(f"  {c.metric:<15} {color}{c.improvement:+.2f} {c.unit}{Colors.RESET}")
    print()


def cmd_cap(args, adapter: Optional[DatabaseAdapter] = None):
    """Show the safety cap for a level."""
    result = cap_workouts(args.level, args.requested, args.goal)
    color = Colors.YELLOW if result.was_capped else Colors.GREEN
    print(f"{color}{result.workouts_per_week} sessions/week{Colors.RESET}")
    if result.explanation:
        print(result.explanation)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Treadmill Coach - training plans for treadmill runners",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  treadmill-coach profile --user alice --level beginner --days 1 3 5
  treadmill-coach generate --user alice --goal 10k --weeks 8
  treadmill-coach schedule --user alice
  treadmill-coach cap --level beginner --requested 6 --goal marathon
        """,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init-db", help="Create the database schema")

    profile_p = subparsers.add_parser("profile", help="Show or update a profile")
    profile_p.add_argument("--user", "-u", required=True, help="User id")
    profile_p.add_argument("--level", choices=[lvl.value for lvl in FitnessLevel])
    profile_p.add_argument("--goal", help="Goal, e.g. 5k, 10k, marathon")
    profile_p.add_argument("--sessions", type=int, help="Sessions per week when no days are picked")
    profile_p.add_argument("--days", type=int, nargs="+", help="Training weekdays, 1=Monday .. 7=Sunday")
    profile_p.add_argument("--max-speed", type=float, help="Treadmill max speed (km/h)")
    profile_p.add_argument("--duration", type=int, help="Usual session length (minutes)")
    profile_p.add_argument("--speeds", type=float, nargs=3, metavar=("WALK", "RUN", "SPRINT"),
                           help="Preferred speeds (km/h)")

    generate_p = subparsers.add_parser("generate", help="Generate a training plan")
    generate_p.add_argument("--user", "-u", required=True, help="User id")
    generate_p.add_argument("--goal", "-g", required=True, help="Goal, e.g. 10k")
    generate_p.add_argument("--weeks", "-w", type=int, default=8, help="Plan length in weeks")
    generate_p.add_argument("--start", help="Start date (YYYY-MM-DD), default today")
    generate_p.add_argument("--intensity", choices=[i.value for i in PlanIntensity],
                            default=PlanIntensity.MODERATE.value)
    generate_p.add_argument("--strategy", choices=[s.value for s in GenerationStrategy],
                            help="Override the configured generation strategy")

    schedule_p = subparsers.add_parser("schedule", help="Show the active plan schedule")
    schedule_p.add_argument("--user", "-u", required=True, help="User id")

    progress_p = subparsers.add_parser("progress", help="Show plan progress and stats")
    progress_p.add_argument("--user", "-u", required=True, help="User id")
    progress_p.add_argument("--days", "-d", type=int, default=30, help="Stats window in days")

    analyze_p = subparsers.add_parser("analyze", help="Show the analytics of a session")
    analyze_p.add_argument("--session", "-s", required=True, help="Session id")
    analyze_p.add_argument("--user", "-u", help="User id, to compare with the previous session")

    cap_p = subparsers.add_parser("cap", help="Show the sessions/week safety cap")
    cap_p.add_argument("--level", required=True, help="beginner, intermediate or advanced")
    cap_p.add_argument("--requested", type=int, required=True, help="Sessions per week wanted")
    cap_p.add_argument("--goal", help="Goal, e.g. marathon")

    return parser


COMMANDS = {
    "init-db": cmd_init_db,
    "profile": cmd_profile,
    "generate": cmd_generate,
    "schedule": cmd_schedule,
    "progress": cmd_progress,
    "analyze": cmd_analyze,
}


def main(argv=None, adapter: Optional[DatabaseAdapter] = None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    settings = get_settings()
    logging.basicConfig(level="DEBUG" if args.verbose else settings.log_level.upper())

    if args.command == "cap":
        cmd_cap(args)
        return
    if args.command not in COMMANDS:
        parser.print_help()
        return

    adapter = adapter or get_database_adapter(settings)
    try:
        adapter.initialize()
        COMMANDS[args.command](args, adapter)
    except TreadmillCoachError as e:
        print(f"{Colors.RED}Error: {e.message}{Colors.RESET}")
        sys.exit(1)
    finally:
        adapter.close()


if __name__ == "__main__":
    main()
