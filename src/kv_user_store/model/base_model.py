class BaseModel:
    """
    Base class for domain objects persisted as plain dictionaries.
    """
    def __eq__(self, other):
        if not isinstance(other, self.__class__):
            return NotImplemented

        return self.to_dict() == other.to_dict()

    def __repr__(self):
        return f'{self.__class__.__name__}({self.to_dict()!r})'

    def to_dict(self) -> dict:
        """
        Serialise the object into a JSON-compatible dictionary.
        :return: Dictionary representation of the object.
        """
        raise NotImplementedError

    @classmethod
    def from_dict(cls, payload: dict) -> 'BaseModel':
        """
        Build the object from a dictionary produced by to_dict().
        :param payload: Dictionary representation of the object.
        :return: A new instance.
        """
        raise NotImplementedError
