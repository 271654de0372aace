from dataclasses import dataclass, asdict

DEFAULT = "default"
DESTRUCTIVE = "destructive"


@dataclass(frozen=True)
class Notification:
    """
    Aviso para el usuario (toast). variant: 'default' | 'destructive'.
    """
    title: str
    description: str
    variant: str = DEFAULT

    def to_dict(self) -> dict:
        return asdict(self)
