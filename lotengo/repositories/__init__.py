from lotengo.repositories.chats import InMemoryChatsRepository, InMemoryMessagesRepository
from lotengo.repositories.notifications import InMemoryNotificationsRepository
from lotengo.repositories.offers import InMemoryOffersRepository
from lotengo.repositories.password_resets import InMemoryPasswordResetsRepository
from lotengo.repositories.products import InMemoryProductsRepository
from lotengo.repositories.ratings import InMemoryRatingsRepository
from lotengo.repositories.requests import InMemoryRequestsRepository
from lotengo.repositories.users import InMemoryUsersRepository

__all__ = [
    "InMemoryChatsRepository",
    "InMemoryMessagesRepository",
    "InMemoryNotificationsRepository",
    "InMemoryOffersRepository",
    "InMemoryPasswordResetsRepository",
    "InMemoryProductsRepository",
    "InMemoryRatingsRepository",
    "InMemoryRequestsRepository",
    "InMemoryUsersRepository",
]
