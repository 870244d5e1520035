from django.conf import settings
from django.core.files.base import ContentFile
from django.core.management.base import BaseCommand, CommandError

from showcase.models import GalleryImage


class Command(BaseCommand):
    help = "Print the effective bucket configuration and run a tiny upload/delete round-trip"

    def handle(self, *args, **options):
        storage = GalleryImage._meta.get_field("image").storage
        self.stdout.write("== Storage configuration ==")
        self.stdout.write(f"DEBUG: {settings.DEBUG}")
        self.stdout.write(f"GalleryImage.image.storage: {type(storage).__name__}")
        try:
            self.stdout.write(f"Supabase bucket: {storage.bucket}")
            self.stdout.write(f"Supabase public base: {storage.public_base}")
        except RuntimeError as e:
            raise CommandError(f"Supabase storage is not configured: {e}")

        self.stdout.write("\n== Upload test ==")
        path = storage.save("check/hello.txt", ContentFile(b"hello-from-devfolio"))
        self.stdout.write(f"Saved as: {path}")
        self.stdout.write(f"Public URL: {storage.url(path)}")
        storage.delete(path)
        self.stdout.write(f"Deleted: {path}")
        self.stdout.write(self.style.SUCCESS("Done."))
