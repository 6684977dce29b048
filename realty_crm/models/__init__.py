# Models package - database models
from realty_crm.models.user import User, UserRole
from realty_crm.models.token import RefreshToken
from realty_crm.models.lead import Lead, LeadActivity
from realty_crm.models.project import Project, LeadSourceOption
from realty_crm.models.notification import Notification
from realty_crm.models.task import Task
from realty_crm.models.chat import ChatGroup, ChatGroupMember, ChatMessage
from realty_crm.models.setting import SystemSetting
