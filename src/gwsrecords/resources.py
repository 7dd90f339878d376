from dataclasses import asdict, fields, is_dataclass

class GoogleWorkSpaceResourceBase():
    """
    Intended to be subclassed by a dataclass but isnt actually a dataclass.
    Gives the resource structs a common way of turning themselves back
    into the dicts the GWS client wants, and a common base to filter on.
    """
    def to_base(self) -> dict:
        """
        Default just return the dict representation of the object as needed by
        the GWS client.  Something with nested resources can override.
        fixup() is called first to ensure all fields are in correct format.
        """
        self.fixup()
        return asdict(self)

    def fixup(self) -> None:
        """
        notify a subclass to do any field adjustments
        """
        pass

    @classmethod
    def from_response(cls, response: dict|None):
        """
        Build from a response dict ignoring any keys we don't model.
        The API adds fields over time and a new key shouldn't break us.
        """
        if not response:
            return cls()
        names = {f.name for f in fields(cls)} if is_dataclass(cls) else set()
        return cls(**{k: v for k, v in response.items() if k in names})
