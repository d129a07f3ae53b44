from django.core.management.base import BaseCommand

from social import follow_graph


class Command(BaseCommand):
    help = (
        "Rebuild every account's followers set from the following sets, "
        "normalizing missing sets and removing self-follows."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--prune-dangling",
            action="store_true",
            help="Also drop followed identifiers that no longer match an account",
        )

    def handle(self, *args, **options):
        report = follow_graph.reconcile(prune_dangling=options["prune_dangling"])

        self.stdout.write(f"Accounts scanned:       {report.scanned}")
        self.stdout.write(f"Missing sets filled:    {report.normalized}")
        self.stdout.write(f"Self-follows removed:   {report.self_follows_removed}")
        self.stdout.write(f"Dangling ids pruned:    {report.dangling_pruned}")
        self.stdout.write(f"Follower sets rewritten: {report.followers_rewritten}")
        self.stdout.write(self.style.SUCCESS(f"{report.updated} accounts updated"))
