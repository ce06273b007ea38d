SAMPLE_COURSES = [
    {
        "title": "Introduction to Murabaha",
        "description": "Understand the principles and application of Murabaha (cost-plus financing) in Islamic banking.",
        "image_url": "https://picsum.photos/seed/murabaha/600/400",
        "modules": [
            {
                "title": "What is Murabaha?",
                "content": "<p>Murabaha is a particular kind of sale where the seller expressly mentions the cost of the sold commodity he has incurred, and sells it to another person by adding some profit thereon. It is one of the most popular modes of financing used by Islamic banks.</p>"
            },
            {
                "title": "Key Features",
                "content": "<ul><li><strong>Transparency:</strong> The cost and profit margin are known to the buyer.</li><li><strong>Asset Ownership:</strong> The bank must own the asset before selling it to the client.</li><li><strong>Deferred Payment:</strong> The sale is typically on a deferred payment basis, allowing the client to pay in installments.</li></ul>"
            },
            {
                "title": "Practical Application",
                "content": "<p>It is commonly used for financing assets like vehicles, machinery, and real estate. The bank purchases the asset from a third party and sells it to the client at an agreed price, which includes the original cost plus a profit margin.</p>"
            }
        ],
        "quiz": [
            {
                "question": "What is the core principle of Murabaha?",
                "options": [
                    "Interest-based lending",
                    "Cost-plus financing",
                    "Profit sharing",
                    "Leasing"
                ],
                "correct_answer": "Cost-plus financing"
            },
            {
                "question": "Who must own the asset before it is sold to the client in a Murabaha transaction?",
                "options": [
                    "The client",
                    "A third party",
                    "The bank",
                    "A broker"
                ],
                "correct_answer": "The bank"
            }
        ]
    },
    {
        "title": "Fundamentals of Ijarah",
        "description": "Explore the concept of Ijarah (leasing) and its role in providing Sharia-compliant financing solutions.",
        "image_url": "https://picsum.photos/seed/ijarah/600/400",
        "modules": [
            {
                "title": "Defining Ijarah",
                "content": "<p>Ijarah is an Islamic financing structure where a bank purchases an asset and then leases it to a customer for a specified period and for an agreed-upon rental payment.</p>"
            },
            {
                "title": "Types of Ijarah",
                "content": "<p>The two main types are <strong>Ijarah-wal-iqtina</strong> (lease to own) and <strong>operating Ijarah</strong>. In the former, the lessee can purchase the asset at the end of the lease term.</p>"
            }
        ],
        "quiz": [
            {
                "question": "Ijarah is the Islamic equivalent of which conventional financial product?",
                "options": [
                    "Loan",
                    "Mortgage",
                    "Leasing",
                    "Stock"
                ],
                "correct_answer": "Leasing"
            }
        ]
    },
    {
        "title": "Mudarabah: Profit-Sharing Partnership",
        "description": "Learn about the Mudarabah contract, a cornerstone of Islamic investment and partnership financing.",
        "image_url": "https://picsum.photos/seed/mudarabah/600/400",
        "modules": [
            {
                "title": "What is Mudarabah?",
                "content": "<p>Mudarabah is a partnership where one partner provides the capital (<strong>Rabb-ul-Mal</strong>) and the other provides expertise and management (<strong>Mudarib</strong>). Profits are shared based on a pre-agreed ratio.</p>"
            },
            {
                "title": "Roles and Responsibilities",
                "content": "<p>The Rabb-ul-Mal bears any financial loss, while the Mudarib loses the reward for their effort. This structure promotes risk-sharing and ethical investment.</p>"
            }
        ],
        "quiz": [
            {
                "question": "In a Mudarabah contract, who provides the capital?",
                "options": [
                    "The Mudarib",
                    "The Rabb-ul-Mal",
                    "Both partners equally",
                    "An external investor"
                ],
                "correct_answer": "The Rabb-ul-Mal"
            }
        ]
    }
]

SAMPLE_RESOURCES = [
    {
        "title": "Islamic Finance: A Practical Guide",
        "description": "An essential book covering the fundamental principles and instruments of Islamic Finance.",
        "url": "#",
        "type": "book"
    },
    {
        "title": "Understanding Sharia-Compliant Investments",
        "description": "An in-depth article from a leading financial journal on ethical investing.",
        "url": "#",
        "type": "article"
    },
    {
        "title": "Webinar: The Future of IFB",
        "description": "A recorded webinar discussing the trends and future outlook for Islamic Finance Banking.",
        "url": "#",
        "type": "video"
    },
    {
        "title": "Journal of Islamic Banking and Finance",
        "description": "A leading academic journal with research papers on contemporary issues in the field.",
        "url": "#",
        "type": "article"
    },
    {
        "title": "Animated Intro to Islamic Finance",
        "description": "A short, engaging video that explains the core concepts of IFB in a simple way.",
        "url": "#",
        "type": "video"
    },
    {
        "title": "Glossary of Islamic Finance Terms",
        "description": "A comprehensive digital glossary to help you understand key Arabic terminology.",
        "url": "#",
        "type": "book"
    }
]
