# fsbox/di.py
from dataclasses import dataclass
from fsbox.config import Settings
from fsbox.services.filesystem import FileSystemService
from fsbox.services.paths import PathResolver

@dataclass
class Container:
    settings: Settings
    resolver: PathResolver
    fs_service: FileSystemService

def build_container(settings: Settings | None = None) -> Container:
    s = settings or Settings()
    resolver = PathResolver(s.root_dir())
    fs = FileSystemService(resolver, stat_workers=s.LIST_STAT_WORKERS)
    return Container(s, resolver, fs)
