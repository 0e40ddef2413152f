from .base_model import BaseModel


class User(BaseModel):
    """
    A user account, keyed by ID and indexed by email.

    The password is stored exactly as given. Hashing, if any, belongs to
    the caller.
    """
    def __init__(self,
                 user_id: str,
                 email: str,
                 name: str,
                 password: str,
                 ):
        """
        A user account, keyed by ID and indexed by email.
        :param user_id: The unique ID of the user
        :param email: The unique email address of the user
        :param name: Display name of the user
        :param password: Opaque password string
        """
        self.user_id = user_id
        self.email = email
        self.name = name
        self.password = password

    def __repr__(self):
        return f'User(user_id={self.user_id!r}, email={self.email!r}, name={self.name!r})'

    def to_dict(self, *, include_password: bool = True) -> dict:
        payload = {
            'id': self.user_id,
            'email': self.email,
            'name': self.name,
        }

        if include_password:
            payload['password'] = self.password

        return payload

    @classmethod
    def from_dict(cls, payload: dict) -> 'User':
        return User(
            user_id=payload['id'],
            email=payload['email'],
            name=payload['name'],
            password=payload['password'],
        )


class Address(BaseModel):
    """
    Postal address attached one-to-one to a user.
    """
    def __init__(self,
                 city: str,
                 street: str,
                 ):
        self.city = city
        self.street = street

    def to_dict(self) -> dict:
        return {
            'city': self.city,
            'street': self.street,
        }

    @classmethod
    def from_dict(cls, payload: dict) -> 'Address':
        return Address(
            city=payload['city'],
            street=payload['street'],
        )
