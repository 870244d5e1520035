import datetime
import json

from django.core.management.base import BaseCommand, CommandError, CommandParser
from django.db import transaction

from showcase.models import Skill, SkillCategory

DEFAULT_CATEGORIES = {
    "frontend": "#61DAFB",
    "backend": "#092E20",
    "database": "#336791",
    "ai": "#8B5CF6",
    "devops": "#0DB7ED",
    "other": "#9CA3AF",
}

DEFAULT_SKILLS = [
    {"name": "Python", "category": "backend", "proficiency_level": 5, "years_experience": 6, "first_used_date": "2019-01-01", "icon_name": "python"},
    {"name": "Django", "category": "backend", "proficiency_level": 4, "years_experience": 4, "first_used_date": "2021-03-01", "icon_name": "django"},
    {"name": "TypeScript", "category": "frontend", "proficiency_level": 4, "years_experience": 4, "first_used_date": "2021-06-01", "icon_name": "typescript"},
    {"name": "React", "category": "frontend", "proficiency_level": 4, "years_experience": 4, "first_used_date": "2021-06-01", "icon_name": "react"},
    {"name": "Next.js", "category": "frontend", "proficiency_level": 3, "years_experience": 2, "first_used_date": "2023-01-01", "icon_name": "nextjs"},
    {"name": "PostgreSQL", "category": "database", "proficiency_level": 4, "years_experience": 5, "first_used_date": "2020-02-01", "icon_name": "postgresql"},
    {"name": "Supabase", "category": "database", "proficiency_level": 3, "years_experience": 1.5, "first_used_date": "2024-01-01", "icon_name": "supabase"},
    {"name": "PyTorch", "category": "ai", "proficiency_level": 3, "years_experience": 2, "first_used_date": "2023-02-01", "icon_name": "pytorch"},
    {"name": "Docker", "category": "devops", "proficiency_level": 4, "years_experience": 4, "first_used_date": "2021-01-01", "icon_name": "docker"},
    {"name": "Git", "category": "other", "proficiency_level": 5, "years_experience": 7, "first_used_date": "2018-01-01", "icon_name": "git"},
]


class Command(BaseCommand):
    help = "Seed or update skill categories and skills (idempotent, matched by name)."

    def add_arguments(self, parser: CommandParser) -> None:
        parser.add_argument("--file", dest="file", help="Path to JSON file of skills array.")
        parser.add_argument("--reset", action="store_true", help="Delete skills not present in input (synchronize by name).")

    def handle(self, *args, **opts):
        if opts.get("file"):
            with open(opts["file"], "r", encoding="utf-8") as f:
                data = json.load(f)
        else:
            data = DEFAULT_SKILLS

        if not isinstance(data, list):
            raise CommandError("Input must be a list of skill objects")

        by_name = {str(item.get("name")).strip(): item for item in data if item.get("name")}
        created = updated = 0

        with transaction.atomic():
            categories = {}
            for item in by_name.values():
                cat_name = (item.get("category") or "other").strip().lower()
                if cat_name not in categories:
                    categories[cat_name], _ = SkillCategory.objects.get_or_create(
                        name=cat_name, defaults={"color": DEFAULT_CATEGORIES.get(cat_name, "#9CA3AF")}
                    )

            for name, item in by_name.items():
                defaults = {
                    "category": categories[(item.get("category") or "other").strip().lower()],
                    "proficiency_level": int(item.get("proficiency_level", 3)),
                    "years_experience": float(item.get("years_experience", 1)),
                    "first_used_date": datetime.date.fromisoformat(item.get("first_used_date") or "2020-01-01"),
                    "icon_name": item.get("icon_name", ""),
                }
                _, was_created = Skill.objects.update_or_create(name=name, defaults=defaults)
                created += int(was_created)
                updated += int(not was_created)

            if opts.get("reset"):
                Skill.objects.exclude(name__in=list(by_name)).delete()

        self.stdout.write(self.style.SUCCESS(
            f"Skills upserted. created={created} updated={updated} total_now={Skill.objects.count()}"
        ))
