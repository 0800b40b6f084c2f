# Import every model so Base.metadata knows all tables before create_all
from wasatext.models.user import User, UserSession
from wasatext.models.conversation import Conversation, ConversationParticipant
from wasatext.models.message import Message
from wasatext.models.reaction import MessageReaction
