# losty/api/conversations/services.py
import logging
import uuid
from dataclasses import asdict
from typing import List
from firebase_admin import firestore

from losty.models.conversation import Conversation
from losty.models.message import Message
from losty.api.posts.services import PostService
from losty.api.users.services import UserService
from losty.utils.datetime_utils import DateTimeUtils

class ConversationService:
    """
    게시물 단위 1:1 대화방과 메시지를 관리하는 서비스 클래스.
    - 대화방: 'conversations' 컬렉션, participants 배열로 참여자 조회
    - 메시지: 'messages' 컬렉션, conversation_id로 대화방과 연결
    """
    def __init__(self, post_service: PostService, user_service: UserService, db=None):
        self.db = db or firestore.client()
        self.conversations_ref = self.db.collection('conversations')
        self.messages_ref = self.db.collection('messages')
        self.post_service = post_service
        self.user_service = user_service

    def get_conversations(self, user_id: str) -> List[Conversation]:
        """내가 참여한 대화방을 마지막 메시지 시간 기준 최신순으로 조회합니다."""
        docs = self.conversations_ref \
            .where('participants', 'array_contains', user_id) \
            .order_by('last_message_time', direction=firestore.Query.DESCENDING) \
            .stream()
        conversations = [Conversation.from_dict(doc.to_dict(), doc.id) for doc in docs]
        return [c for c in conversations if c.has_participant(user_id)]

    def get_conversation(self, conversation_id: str, user_id: str) -> Conversation:
        """참여자만 대화방을 조회할 수 있습니다."""
        doc = self.conversations_ref.document(conversation_id).get()
        if not doc.exists:
            raise LookupError("Conversation not found.")
        conversation = Conversation.from_dict(doc.to_dict(), doc.id)
        if not conversation.has_participant(user_id):
            raise PermissionError("이 대화방에 접근할 권한이 없습니다.")
        return conversation

    def get_or_create_conversation(self, user_id: str, post_id: str) -> Conversation:
        """
        게시물 작성자와의 대화방을 찾고, 없으면 새로 만듭니다.
        participant1은 대화를 시작한 사용자, participant2는 게시물 작성자입니다.
        """
        post = self.post_service.get_post(post_id)
        if not post:
            raise LookupError("Post not found.")
        if post.author_id == user_id:
            raise ValueError("You cannot message yourself about your own item.")

        existing = self.conversations_ref \
            .where('post_id', '==', post_id) \
            .where('participants', 'array_contains', user_id) \
            .stream()
        for doc in existing:
            conversation = Conversation.from_dict(doc.to_dict(), doc.id)
            if conversation.has_participant(post.author_id):
                return conversation

        profile = self.user_service.get_user_profile(user_id)
        my_name = ""
        if profile:
            my_name = profile.display_name if profile.display_name != "User" else (profile.email or profile.display_name)

        conversation = Conversation(
            conversation_id=str(uuid.uuid4()),
            post_id=post.post_id,
            post_title=post.title,
            post_image_url=post.image_urls[0] if post.image_urls else "",
            participant1_id=user_id,
            participant1_name=my_name or "User",
            participant2_id=post.author_id,
            participant2_name=post.author_name,
            participants=[user_id, post.author_id],
            last_message="",
            last_message_time=DateTimeUtils.now(),
            unread_count=0
        )
        self.conversations_ref.document(conversation.conversation_id).set(
            DateTimeUtils.for_firestore(asdict(conversation))
        )
        logging.info(f"대화방 생성 완료 (conversation_id: {conversation.conversation_id}, post_id: {post_id})")
        return conversation

    def messages_query(self, conversation_id: str):
        """대화방 메시지를 시간순으로 조회하는 쿼리. 일회성 조회와 실시간 스트림이 함께 사용합니다."""
        return self.messages_ref \
            .where('conversation_id', '==', conversation_id) \
            .order_by('timestamp')

    def get_messages(self, conversation_id: str, user_id: str) -> List[Message]:
        self.get_conversation(conversation_id, user_id)
        docs = self.messages_query(conversation_id).stream()
        return [Message.from_dict(doc.to_dict(), doc.id) for doc in docs]

    def send_message(self, conversation_id: str, user_id: str, text: str) -> Message:
        """
        메시지를 저장한 뒤 대화방 미리보기(마지막 메시지/시간)를 갱신하고
        읽지 않은 메시지 수를 1 증가시킵니다.
        """
        self.get_conversation(conversation_id, user_id)

        message = Message(
            message_id=str(uuid.uuid4()),
            conversation_id=conversation_id,
            sender_id=user_id,
            sender_name=self.user_service.get_user_name(user_id),
            text=text,
            read=False,
            timestamp=DateTimeUtils.now()
        )
        self.messages_ref.document(message.message_id).set(DateTimeUtils.for_firestore(asdict(message)))

        self.conversations_ref.document(conversation_id).update({
            'last_message': text,
            'last_message_time': DateTimeUtils.for_firestore(message.timestamp),
            'unread_count': firestore.Increment(1)
        })
        return message

    def mark_conversation_read(self, conversation_id: str, user_id: str) -> int:
        """
        상대방이 보낸 읽지 않은 메시지를 읽음 처리합니다.
        unread_count는 처리 후에도 읽지 않은 채 남은 메시지 수로 다시 계산합니다.
        보낸 사람이 호출하면 상대방이 아직 읽지 않은 메시지가 그대로 남습니다.
        """
        conversation = self.get_conversation(conversation_id, user_id)
        unread_query = self.messages_ref \
            .where('conversation_id', '==', conversation_id) \
            .where('read', '==', False)

        updated = 0
        for doc in unread_query.where('sender_id', '==', conversation.other_participant(user_id)).stream():
            doc.reference.update({'read': True})
            updated += 1

        remaining = len(list(unread_query.stream()))
        self.conversations_ref.document(conversation_id).update({'unread_count': remaining})
        return updated
