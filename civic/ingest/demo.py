"""Fixed demo batch of social, group-chat and email reports."""

from __future__ import annotations

import logging

from civic.ingest import register_source
from civic.ingest.base import BaseSource
from civic.models import EMAIL, GROUP, SOCIAL, RawPost

logger = logging.getLogger(__name__)

DEMO_POSTS: tuple[RawPost, ...] = (
    RawPost(
        id="t1", source=SOCIAL, origin_handle="@delhi_resident", received_label="2m ago",
        text="The streetlight near Connaught Place has been broken for 2 weeks!! "
        "Nobody fixing it #DelhiProblems #Infrastructure",
    ),
    RawPost(
        id="w1", source=GROUP, origin_handle="Resident Group Delhi", received_label="5m ago",
        text="Bhai logo garbage truck aaya hi nahi 3 din se, hamare block mein bahut "
        "smell aa rahi hai. Koi complain karo please",
    ),
    RawPost(
        id="t2", source=SOCIAL, origin_handle="@angryCitizen99", received_label="8m ago",
        text="HUGE pothole on MG Road near metro station. My bike's tyre burst! "
        "@MunicipalCorp @DelhiGovt please fix URGENTLY \U0001f6a8",
    ),
    RawPost(
        id="e1", source=EMAIL, origin_handle="ramesh.k@gmail.com", received_label="12m ago",
        text="Subject: Water supply cut for 4 days in Sector 14\n\nDear Sir, We have not "
        "received water supply for the past 4 days in Sector 14, Dwarka. Kindly look "
        "into this matter urgently.",
    ),
    RawPost(
        id="t3", source=SOCIAL, origin_handle="@localreporter", received_label="15m ago",
        text="Park in Lajpat Nagar completely vandalized. Benches broken, graffiti "
        "everywhere. Kids have nowhere to play. @DDA_India",
    ),
    RawPost(
        id="w2", source=GROUP, origin_handle="Colony WhatsApp", received_label="18m ago",
        text="Bus stop ka shed toot gaya 2 mahine pehle se. Baarish mein bohot problem "
        "hoti hai. Koi sunta hi nahi hai",
    ),
    RawPost(
        id="e2", source=EMAIL, origin_handle="priya.sharma@yahoo.com", received_label="22m ago",
        text="Subject: Illegal parking blocking our driveway\n\nFor the past month, unknown "
        "vehicles are parking in front of our gate at 45 Vasant Vihar. Police not "
        "responding to calls.",
    ),
    RawPost(
        id="t4", source=SOCIAL, origin_handle="@techie_delhi", received_label="25m ago",
        text="lol free pizza lol discount code FREE100 click link bit.ly/fakespam not a "
        "real complaint haha spam test",
    ),
    RawPost(
        id="w3", source=GROUP, origin_handle="Saket Residents", received_label="28m ago",
        text="Sewer line overflow ho gayi Select City Walk ke peeche. Raste pe paani bhar "
        "gaya. Bahut buri smell. Health hazard ban raha hai",
    ),
    RawPost(
        id="t5", source=SOCIAL, origin_handle="@frustrated_mom", received_label="31m ago",
        text="The playground at RK Puram park is so dangerous!! Rusty swings, broken "
        "slide. My child got hurt yesterday. This is unacceptable @DelhiGovt",
    ),
    RawPost(
        id="e3", source=EMAIL, origin_handle="suresh.v@hotmail.com", received_label="35m ago",
        text="Subject: Dead tree leaning on power lines\n\nA large dead tree at B-12 Green "
        "Park Extension is leaning dangerously over power lines. It can fall any time "
        "and cause serious accidents.",
    ),
    RawPost(
        id="t6", source=SOCIAL, origin_handle="@spambot_xyz", received_label="38m ago",
        text="BUY NOW!!! Best deals!!! Click here!!! Not related to civic issues at all. "
        "aaaa aaa test test test",
    ),
)


@register_source("demo")
class DemoSource(BaseSource):
    """Serve the built-in demo batch."""

    @property
    def name(self) -> str:
        return "demo"

    async def fetch(self) -> list[RawPost]:
        limit = self.settings.get("limit")
        posts = list(DEMO_POSTS[:limit] if limit else DEMO_POSTS)
        logger.info("Demo feed served %d posts", len(posts))
        return posts
